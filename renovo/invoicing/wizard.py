"""
Invoice creation wizard.

The wizard walks through four steps:

    ITEM_SELECTION -> DETAILS -> REVIEW -> SEND

Step 0 is skipped when items are preselected (e.g. from the spec item list).
Only items that have an RRP and were approved by the client can be
selected. Moving from DETAILS to REVIEW requires a title and at least one
line item; blocked transitions raise WizardError.
"""
from enum import IntEnum

from renovo.pricing.calculations import calculate_totals, has_price, line_total, to_decimal

COMPONENT_PREFIX = '↳ '


class InvoiceWizardStep(IntEnum):
    ITEM_SELECTION = 0
    DETAILS = 1
    REVIEW = 2
    SEND = 3


class WizardError(Exception):
    pass


class InvoiceWizard:
    def __init__(self, items, preselected_ids=None, gst_rate=None, qst_rate=None):
        self.items = list(items)
        self.items_by_id = {item.id: item for item in self.items}
        self.selected_ids = []
        self.title = ''
        self.description = ''
        self.delivery_fee = to_decimal(None)
        self.custom_fees = []
        self.gst_rate = gst_rate
        self.qst_rate = qst_rate
        self.line_items = []

        for item_id in preselected_ids or []:
            item = self.items_by_id.get(item_id)
            if item is not None and item.is_invoice_eligible() and item_id not in self.selected_ids:
                self.selected_ids.append(item_id)
        self.step = self.start_step(bool(self.selected_ids))
        if self.step == InvoiceWizardStep.DETAILS:
            self.line_items = self.build_line_items()

    @staticmethod
    def start_step(has_preselection):
        if has_preselection:
            return InvoiceWizardStep.DETAILS
        return InvoiceWizardStep.ITEM_SELECTION

    def selectable_items(self):
        return [item for item in self.items if item.is_invoice_eligible()]

    def ineligible_items(self):
        return [
            {'id': item.id, 'name': item.name, 'reason': item.ineligibility_reason()}
            for item in self.items if not item.is_invoice_eligible()
        ]

    def already_invoiced_warnings(self):
        """Selected items that already appear on an invoice"""
        return [
            {'id': item.id, 'name': item.name, 'status': item.spec_status}
            for item in self.selected_items() if item.is_already_invoiced
        ]

    def selected_items(self):
        return [self.items_by_id[item_id] for item_id in self.selected_ids]

    def toggle_item(self, item_id):
        item = self.items_by_id.get(item_id)
        if item is None:
            raise WizardError(f'Unknown item {item_id}')
        if item_id in self.selected_ids:
            self.selected_ids.remove(item_id)
            return False
        if not item.is_invoice_eligible():
            raise WizardError(f'{item.name} cannot be invoiced: {item.ineligibility_reason()}')
        self.selected_ids.append(item_id)
        return True

    def select_category(self, category_name):
        """
        Select every eligible item in a category, or deselect them all when
        they are already selected.
        """
        eligible = [
            item for item in self.selectable_items()
            if (item.section_name or '').lower() == (category_name or '').lower()
        ]
        if eligible and all(item.id in self.selected_ids for item in eligible):
            for item in eligible:
                self.selected_ids.remove(item.id)
            return []
        for item in eligible:
            if item.id not in self.selected_ids:
                self.selected_ids.append(item.id)
        return [item.id for item in eligible]

    def build_line_items(self):
        """
        One line per selected item at its selling price, followed by one line
        per priced component.
        """
        lines = []
        for item in self.selected_items():
            unit_price = item.selling_price
            room_name = item.room.name if item.room_id else ''
            lines.append({
                'spec_item': item,
                'display_name': item.name,
                'display_description': item.description,
                'category_name': item.section_name,
                'room_name': room_name,
                'quantity': item.quantity or 1,
                'unit_type': item.unit_type or 'units',
                'currency': item.currency,
                'client_unit_price': unit_price,
                'supplier_unit_price': item.trade_price,
                'markup_percent': item.markup_percent,
                'is_component': False,
            })
            for component in item.components.all():
                price = component.client_price
                if not has_price(price):
                    continue
                lines.append({
                    'spec_item': item,
                    'display_name': f'{COMPONENT_PREFIX}{component.name}',
                    'display_description': component.model_number,
                    'category_name': item.section_name,
                    'room_name': room_name,
                    'quantity': component.quantity or 1,
                    'unit_type': 'units',
                    'currency': item.currency,
                    'client_unit_price': price,
                    'supplier_unit_price': component.price,
                    'markup_percent': None if has_price(item.rrp) else item.markup_percent,
                    'is_component': True,
                })
        return lines

    def can_advance(self):
        if self.step == InvoiceWizardStep.ITEM_SELECTION:
            return len(self.selected_ids) > 0
        if self.step == InvoiceWizardStep.DETAILS:
            return self.title.strip() != '' and len(self.line_items) > 0
        if self.step == InvoiceWizardStep.REVIEW:
            return all(has_price(line['client_unit_price']) for line in self.line_items)
        return False

    def advance(self):
        if self.step == InvoiceWizardStep.SEND:
            raise WizardError('Already at the last step')
        if not self.can_advance():
            if self.step == InvoiceWizardStep.ITEM_SELECTION:
                raise WizardError('Please select at least one item')
            if self.step == InvoiceWizardStep.DETAILS:
                if not self.title.strip():
                    raise WizardError('Please enter an invoice title')
                raise WizardError('Please select at least one item')
            raise WizardError('All items must have a valid price')
        if self.step == InvoiceWizardStep.ITEM_SELECTION:
            self.line_items = self.build_line_items()
        self.step = InvoiceWizardStep(self.step + 1)
        return self.step

    def back(self):
        if self.step == InvoiceWizardStep.ITEM_SELECTION:
            raise WizardError('Already at the first step')
        self.step = InvoiceWizardStep(self.step - 1)
        return self.step

    def set_line_quantity(self, index, quantity):
        if self.step != InvoiceWizardStep.REVIEW:
            raise WizardError('Quantities can only be changed while reviewing')
        if int(quantity) < 1:
            raise WizardError('Quantity must be at least 1')
        self.line_items[index]['quantity'] = int(quantity)

    def set_line_price(self, index, unit_price):
        if self.step != InvoiceWizardStep.REVIEW:
            raise WizardError('Prices can only be changed while reviewing')
        self.line_items[index]['client_unit_price'] = to_decimal(unit_price)

    def line_total(self, index):
        line = self.line_items[index]
        return line_total(line['quantity'], line['client_unit_price'] or 0)

    def totals(self):
        kwargs = {}
        if self.gst_rate is not None:
            kwargs['gst_rate'] = self.gst_rate
        if self.qst_rate is not None:
            kwargs['qst_rate'] = self.qst_rate
        return calculate_totals(
            [
                {'quantity': line['quantity'], 'unit_price': line['client_unit_price'] or 0, 'currency': line['currency']}
                for line in self.line_items
            ],
            delivery_fee=self.delivery_fee,
            custom_fees=self.custom_fees,
            **kwargs
        )
