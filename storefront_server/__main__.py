"""Allow running as ``python -m storefront_server``."""

from .cli import main

main()
