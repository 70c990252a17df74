from docflow.compression.engine import CompressionEngine
from docflow.compression.ghostscript import GhostscriptRunner
from docflow.config.settings import Settings


class CompressionEngineFactory:
    """Creates the compression engine with the configured external tool."""

    @classmethod
    def create(cls, settings: Settings) -> CompressionEngine:
        return CompressionEngine(
            GhostscriptRunner(settings.ghostscript_binary, settings.ghostscript_options)
        )
