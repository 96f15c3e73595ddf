"""Deck optimizer and beam-search deck builder for Clash Royale style card games."""

__all__ = [
    'optimize_deck',
    'BeamSearchBuilder',
    'DeckBuilderError',
]

__version__ = '0.1.0'


def __getattr__(name):
    # Lazy-load the engine to keep `import royale_deckbuilder.settings` side-effect free
    if name == 'optimize_deck':
        from .deck_builder.optimizer import optimize_deck
        return optimize_deck
    if name == 'BeamSearchBuilder':
        from .deck_builder.beam_search import BeamSearchBuilder
        return BeamSearchBuilder
    if name == 'DeckBuilderError':
        from .exceptions import DeckBuilderError
        return DeckBuilderError
    raise AttributeError(name)
