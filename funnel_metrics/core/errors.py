"""
Exception types raised by the Funnel Metrics engine.

Missing or malformed record fields and zero denominators are not errors and
never raise. Only two failure families exist:

- ChannelConfigurationError: a programming/configuration contract violation
  (missing benchmark table, weights not summing to 1.0, unknown channel).
  Raised at engine construction or dispatch selection and never caught by
  the engine.
- ChannelPipelineError: one channel failed while fetching or processing its
  records. Dispatch records it as data and carries on with the other channels.
"""


class ChannelConfigurationError(ValueError):
    """Benchmark, weight, or descriptor configuration is invalid."""


class ChannelPipelineError(RuntimeError):
    """A single channel pipeline failed."""

    def __init__(self, channel: str, message: str):
        self.channel = channel
        super().__init__(f"{channel}: {message}")
