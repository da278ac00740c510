"""
Options given before the subcommand (`xcbazel -v --config ci.yaml build ...`).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from xcbazel.config.models import LoggingConfig
from xcbazel.logging import setup_logging


@dataclass
class GlobalOptions:
    """Root context object shared by every subcommand."""

    verbose: bool = False
    quiet: bool = False
    log_level: Optional[str] = None
    log_format: Optional[str] = None
    config_file: Optional[Path] = None

    @property
    def level_override(self) -> Optional[str]:
        """Level chosen on the command line, if any; --log-level beats -v/-q."""
        if self.log_level:
            return self.log_level.upper()
        if self.verbose:
            return "DEBUG"
        if self.quiet:
            return "ERROR"
        return None

    def configure_logging(self, settings: Optional[LoggingConfig] = None) -> None:
        """
        Set up logging from the flags, falling back to the `logging` section.

        Called once before the settings file is read, and again after, so
        a file-configured format or destination takes effect for the run.
        """
        settings = settings or LoggingConfig()
        setup_logging(
            level=self.level_override or settings.level.value,
            format_type=self.log_format or settings.format.value,
            output=settings.output,
        )


def global_options(ctx: typer.Context) -> GlobalOptions:
    """The GlobalOptions of the running command, or defaults outside the app."""
    return ctx.find_object(GlobalOptions) or GlobalOptions()
