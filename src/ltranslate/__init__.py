"""ltranslate: keep translated locale files in step with an English source file."""

__version__ = "0.4.0"

APP_NAME = "ltranslate"
SOURCE_LANGUAGE_CODE = "EN"
