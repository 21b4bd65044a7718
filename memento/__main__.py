# memento/__main__.py
# `python -m memento` entry point

from .cli import main

raise SystemExit(main())
