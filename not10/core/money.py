"""金额换算与格式化，内部统一使用分作为单位."""

CENTS_PER_DOLLAR = 100


def format_money(cents: int) -> str:
    """
    把分格式化为美元字符串.

    Args:
        cents: 金额（分）

    Returns:
        str: 如 100000 -> "$1,000"，5050 -> "$50.50"
    """
    sign = "-" if cents < 0 else ""
    dollars, rest = divmod(abs(cents), CENTS_PER_DOLLAR)
    if rest:
        return f"{sign}${dollars:,}.{rest:02d}"
    return f"{sign}${dollars:,}"


def dollars_to_cents(dollars: int) -> int:
    """美元转换为分."""
    return int(dollars) * CENTS_PER_DOLLAR


def cents_to_dollars(cents: int) -> float:
    """分转换为美元."""
    return cents / CENTS_PER_DOLLAR
