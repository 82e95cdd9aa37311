"""Exceptions raised by gauge definition and label resolution."""


class GaugeError(ValueError):
    """Base class for gaugekit errors."""
    pass


class SchemaMismatch(GaugeError):
    """Accumulated label names do not match the declared label names."""

    def __init__(self, metric_name, missing, unexpected):
        self.metric_name = metric_name
        self.missing = frozenset(missing)
        self.unexpected = frozenset(unexpected)
        details = []
        if self.missing:
            details.append(f"missing {sorted(self.missing)}")
        if self.unexpected:
            details.append(f"unexpected {sorted(self.unexpected)}")
        super().__init__(
            f"Label names for '{metric_name}' do not match schema: {', '.join(details)}"
        )


class InvalidConfiguration(GaugeError):
    """Builder configuration cannot produce a metric."""
    pass
