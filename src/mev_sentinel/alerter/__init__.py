"""Alert formatting for operator-facing channels."""

from mev_sentinel.alerter.formatter import AlertFormatter
from mev_sentinel.alerter.models import FormattedAlert

__all__ = ["AlertFormatter", "FormattedAlert"]
