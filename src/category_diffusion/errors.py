"""Exception hierarchy for the analysis pipeline."""


class DiffusionError(Exception):
    """Base class for all category-diffusion errors."""


class WikiAPIError(DiffusionError):
    """A listing or metadata request to the wiki failed."""


class LLMError(DiffusionError):
    """A model invocation failed or timed out."""


class ResponseParseError(DiffusionError):
    """A model reply contained no parseable JSON object."""


class PipelineError(DiffusionError):
    """A required pipeline step failed; the run ends in the error state."""
