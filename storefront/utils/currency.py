"""Currency formatting for Indian Rupees (INR)"""


def group_indian(digits: str) -> str:
    """Group digits the Indian way: 12,34,567"""
    if len(digits) <= 3:
        return digits

    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_inr(amount: int | float) -> str:
    """
    Format an amount of rupees with the ₹ symbol and no fraction digits.

    >>> format_inr(1234567)
    '₹12,34,567'
    """
    rounded = int(round(amount))
    sign = "-" if rounded < 0 else ""
    return f"{sign}₹{group_indian(str(abs(rounded)))}"
