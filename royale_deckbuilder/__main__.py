from .headless_runner import _main

raise SystemExit(_main())
