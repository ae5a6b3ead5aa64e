"""Concrete cancellation types; import from ``chatstream.base.cancellation``."""
