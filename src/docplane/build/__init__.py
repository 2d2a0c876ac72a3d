"""Build module - HTML output and build orchestration."""

from docplane.build.html import HtmlBuilder
from docplane.build.runner import BuildResult, BuildSession, run_build

__all__ = ["BuildResult", "BuildSession", "HtmlBuilder", "run_build"]
