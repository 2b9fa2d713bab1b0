import logging
import config


def setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    """
    Configure root logging for the command-line tools.

    INFO by default, DEBUG with --verbose. Optionally mirrors everything
    to a file.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=config.LOG_FORMAT, datefmt=config.LOG_DATE_FORMAT)

    if log_file:
        fh = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(config.LOG_FORMAT, datefmt=config.LOG_DATE_FORMAT))
        logging.getLogger().addHandler(fh)

    # matplotlib is chatty at DEBUG
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


def fmt_m(meters: float) -> str:
    """Formats meters as a whole number, e.g. 1234.6 -> '1,235 m'."""
    return f"{meters:,.0f} m"


def fmt_ratio(ratio: float) -> str:
    """Formats a gain/loss ratio; infinite ratios show as '∞'."""
    if ratio == float("inf"):
        return "∞"
    return f"{ratio:.3f}"


def fmt_error_pct(value: float, reference: float | None) -> str:
    """Signed percentage difference from a reference, '-' when there is none."""
    if not reference:
        return "-"
    return f"{(value - reference) / reference * 100:+.1f}%"
