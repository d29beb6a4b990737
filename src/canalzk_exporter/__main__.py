"""Allow running as `python -m canalzk_exporter`."""

from canalzk_exporter.cli import main

main()
