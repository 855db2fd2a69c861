"""Exceptions raised by the analysis and contextual-chat services.

Validation problems subclass ValueError and concurrency or transport problems
subclass RuntimeError, so controllers translate them the same way they
translate the built-in errors.
"""


class VisionServiceError(RuntimeError):
    """The vision service call failed or returned no usable text."""


class PipelineValidationError(ValueError):
    """An analysis run was requested without any classified chart."""


class PipelineBusyError(RuntimeError):
    """An analysis run was requested while another one is running."""


class ChatBusyError(RuntimeError):
    """A question was submitted while the previous one is still awaiting an answer."""


class ChatClosedError(RuntimeError):
    """A question was submitted to a chat that is not open."""
