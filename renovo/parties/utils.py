"""Supplier lookup helpers"""


def normalize_name(value):
    return (value or '').strip().lower()


def match_supplier(name, suppliers):
    """
    Find the supplier whose name matches ``name``.

    Matching is case-insensitive: an exact match wins, otherwise either name
    containing the other counts. Returns None when nothing matches.
    """
    target = normalize_name(name)
    if not target:
        return None

    candidates = list(suppliers)
    for supplier in candidates:
        if normalize_name(supplier.name) == target:
            return supplier

    for supplier in candidates:
        supplier_name = normalize_name(supplier.name)
        if supplier_name and (supplier_name in target or target in supplier_name):
            return supplier

    return None
