"""
Partial fulfillment engine.

Tracks how much of each order line has already been carried onto invoices and
validates new selections against what remains. Invoice lines point back at
their order line through `so_item_id`; rows written before that column existed
are matched by product instead.
"""
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.orm import Session
import logging

from models.sales_orders import SalesOrder
from models.sales_order_items import SalesOrderItem
from models.purchase_orders import PurchaseOrder
from models.purchase_order_items import PurchaseOrderItem
from models.invoices import Invoice, InvoiceStatus
from models.invoice_items import InvoiceItem
from schemas.fulfillment import RemainingLine
from exceptions import NoItemsSelected, QuantityExceedsRemaining, ValidationFailed
from utils.parsing import parse_quantity, round_money, CENTS

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _value(obj, key):
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _product_name(line) -> str:
    product = _value(line, "product")
    if product is not None and getattr(product, "name", None):
        return product.name
    return _value(line, "description") or f"product {_value(line, 'product_id')}"


def compute_remaining(order_lines, applied_lines):
    """
    Remaining quantity per order line.

    Args:
        order_lines: order items (id, product_id, quantity, price_per_unit).
        applied_lines: lines of documents already issued against the order
            (so_item_id, product_id, quantity).

    Returns:
        One RemainingLine per order line, in order-line order. remaining_qty is
        never negative; a line with nothing left is flagged fully_invoiced.
    """
    order_lines = list(order_lines)
    line_ids = {_value(line, "id") for line in order_lines}
    applied_by_line = defaultdict(lambda: ZERO)
    unlinked_by_product = defaultdict(lambda: ZERO)

    for applied in applied_lines:
        quantity = Decimal(str(_value(applied, "quantity") or 0))
        so_item_id = _value(applied, "so_item_id")
        if so_item_id is not None and so_item_id in line_ids:
            applied_by_line[so_item_id] += quantity
        else:
            unlinked_by_product[_value(applied, "product_id")] += quantity

    results = []
    for line in order_lines:
        original = Decimal(str(_value(line, "quantity")))
        applied = applied_by_line[_value(line, "id")]

        # Unlinked quantities are consumed line by line so none is counted twice
        unlinked = unlinked_by_product.get(_value(line, "product_id"), ZERO)
        if unlinked > 0:
            taken = min(max(ZERO, original - applied), unlinked)
            applied += taken
            unlinked_by_product[_value(line, "product_id")] = unlinked - taken

        remaining = max(ZERO, original - applied)
        results.append(RemainingLine(
            so_item_id=_value(line, "id"),
            product_id=_value(line, "product_id"),
            product_name=_product_name(line),
            price_per_unit=Decimal(str(_value(line, "price_per_unit") or 0)),
            original_qty=original,
            applied_qty=applied,
            remaining_qty=remaining,
            fully_invoiced=remaining <= 0,
        ))
    return results


def get_invoiced_lines(db: Session, sales_order_id: int):
    """Invoice lines already issued against a sales order. Void invoices do not count."""
    return db.query(InvoiceItem).join(Invoice, InvoiceItem.invoice_id == Invoice.id).filter(
        Invoice.sales_order_id == sales_order_id,
        Invoice.status != InvoiceStatus.VOID
    ).order_by(InvoiceItem.id).all()


def get_order_remaining(db: Session, sales_order: SalesOrder) -> dict:
    lines = compute_remaining(sales_order.items, get_invoiced_lines(db, sales_order.id))
    invoiceable = [line for line in lines if not line.fully_invoiced]
    remaining_amount = sum((round_money(line.remaining_qty * line.price_per_unit) for line in invoiceable), ZERO)
    return {
        "sales_order_id": sales_order.id,
        "lines": lines,
        "invoiceable_lines": invoiceable,
        "remaining_amount": remaining_amount,
    }


def selections_for_full_remaining(remaining_lines):
    selections = [
        {"so_item_id": line.so_item_id, "quantity": line.remaining_qty}
        for line in remaining_lines if line.remaining_qty > 0
    ]
    if not selections:
        raise NoItemsSelected("Every line of this order has already been invoiced.")
    return selections


def selections_for_amount(remaining_lines, amount: Decimal):
    """
    Spread a partial amount over the uninvoiced lines in proportion to their value.

    Each line gets remaining_qty * amount / uninvoiced_value, rounded to cents,
    so the resulting document total can differ from `amount` by rounding only.
    """
    invoiceable = [line for line in remaining_lines if line.remaining_qty > 0]
    if not invoiceable:
        raise NoItemsSelected("Every line of this order has already been invoiced.")

    uninvoiced_value = sum((line.remaining_qty * line.price_per_unit for line in invoiceable), ZERO)
    if amount > uninvoiced_value:
        raise ValidationFailed(
            f"Partial amount {amount} exceeds the uninvoiced value {round_money(uninvoiced_value)}.",
            partial_amount=str(amount),
            uninvoiced_amount=str(round_money(uninvoiced_value)),
        )

    selections = []
    for line in invoiceable:
        quantity = (line.remaining_qty * amount / uninvoiced_value).quantize(CENTS, rounding=ROUND_HALF_UP)
        quantity = min(quantity, line.remaining_qty)
        if quantity > 0:
            selections.append({"so_item_id": line.so_item_id, "quantity": quantity})

    if not selections:
        raise NoItemsSelected(f"Partial amount {amount} is too small to cover any quantity.")
    return selections


def _resolve_order_line(order_lines, remaining_by_line, selection):
    so_item_id = _value(selection, "so_item_id")
    if so_item_id is not None:
        for line in order_lines:
            if line.id == so_item_id:
                return line
        raise ValidationFailed(f"Order line {so_item_id} is not part of this order.", so_item_id=so_item_id)

    product_id = _value(selection, "product_id")
    candidates = [line for line in order_lines if line.product_id == product_id]
    if not candidates:
        raise ValidationFailed(f"Product {product_id} is not part of this order.", product_id=product_id)
    for line in candidates:
        if remaining_by_line[line.id].remaining_qty > 0:
            return line
    return candidates[0]


def apply_partial_document(db: Session, sales_order: SalesOrder, selected_lines):
    """
    Validate a line selection against the order's remaining quantities and consume it.

    Nothing is modified unless every selected line fits. On success each touched
    order line gets its invoiced_quantity increased and fully_invoiced recomputed.

    Returns:
        Resolved document lines (product, description, quantity, price, total,
        so_item_id) ready to be written onto an invoice.

    Raises:
        NoItemsSelected: the selection is empty.
        InvalidQuantity: a quantity is missing, non-finite or not positive.
        QuantityExceedsRemaining: a line asks for more than is left.
    """
    selected_lines = list(selected_lines or [])
    if not selected_lines:
        raise NoItemsSelected("Select at least one line with a quantity greater than zero.")

    order_lines = db.query(SalesOrderItem).filter(
        SalesOrderItem.sales_order_id == sales_order.id
    ).order_by(SalesOrderItem.id).with_for_update().all()
    remaining_by_line = {
        line.so_item_id: line
        for line in compute_remaining(order_lines, get_invoiced_lines(db, sales_order.id))
    }

    requested = {}
    for index, selection in enumerate(selected_lines, start=1):
        quantity = parse_quantity(_value(selection, "quantity"), field=f"items[{index}].quantity")
        line = _resolve_order_line(order_lines, remaining_by_line, selection)
        requested[line.id] = requested.get(line.id, ZERO) + quantity

    lines_by_id = {line.id: line for line in order_lines}
    for line_id, quantity in requested.items():
        remaining = remaining_by_line[line_id]
        if quantity > remaining.remaining_qty:
            logger.warning(
                f"Rejected selection on Sales Order {sales_order.id}: {quantity} of '{remaining.product_name}' requested, {remaining.remaining_qty} remaining"
            )
            raise QuantityExceedsRemaining(remaining.product_name, quantity, remaining.remaining_qty)

    processed = []
    for line_id, quantity in requested.items():
        line = lines_by_id[line_id]
        line.invoiced_quantity = (line.invoiced_quantity or ZERO) + quantity
        line.fully_invoiced = line.invoiced_quantity >= line.quantity
        processed.append({
            "so_item_id": line.id,
            "product_id": line.product_id,
            "product_name": _product_name(line),
            "description": line.description or _product_name(line),
            "quantity": quantity,
            "price_per_unit": line.price_per_unit,
            "line_total": round_money(quantity * line.price_per_unit),
        })
    db.flush()

    logger.info(f"Applied {len(processed)} line(s) to Sales Order {sales_order.id}: {[(p['so_item_id'], str(p['quantity'])) for p in processed]}")
    return processed


def apply_to_purchase_order(db: Session, purchase_order: PurchaseOrder, processed_items):
    """
    Consume the same quantities on the mirrored purchase order.

    Lines are paired by product in line order. Returns the processed items with
    the matching `po_item_id` attached.
    """
    po_lines = db.query(PurchaseOrderItem).filter(
        PurchaseOrderItem.purchase_order_id == purchase_order.id
    ).order_by(PurchaseOrderItem.id).with_for_update().all()

    billed = []
    for item in processed_items:
        quantity = item["quantity"]
        candidates = [line for line in po_lines if line.product_id == item["product_id"]]
        if not candidates:
            raise ValidationFailed(
                f"Purchase order {purchase_order.po_number} has no line for product {item['product_id']}.",
                purchase_order_id=purchase_order.id,
            )
        target = next((line for line in candidates if line.quantity - (line.billed_quantity or ZERO) >= quantity), None)
        if target is None:
            remaining = max(line.quantity - (line.billed_quantity or ZERO) for line in candidates)
            raise QuantityExceedsRemaining(item["product_name"], quantity, max(ZERO, remaining))

        target.billed_quantity = (target.billed_quantity or ZERO) + quantity
        target.fully_billed = target.billed_quantity >= target.quantity
        billed.append(dict(item, po_item_id=target.id))

    db.flush()
    return billed
