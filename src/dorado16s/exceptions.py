class PipelineError(Exception):
    """Base class for fatal pipeline errors."""


class ConfigurationError(PipelineError):
    """Missing or invalid options or input files."""


class CompatibilityError(PipelineError):
    """An external tool does not expose an expected flag."""


class DependencyError(PipelineError):
    """A required external tool is not available."""


class OutputCollisionError(PipelineError):
    """The output directory already holds results."""
