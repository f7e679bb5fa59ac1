from decimal import Decimal

import pytest

from services.enums import QuantityMode
from services.validation_service import (
    INVENTORY_ITEM_RULES, MATERIAL_SHIPMENT_RULES, ORDER_SHIPMENT_RULES,
    ValidationError, sanitize_int, validate_date, validate_quantity_adjustment, validate_record,
)


def valid_item(**overrides):
    item = {
        'item_code': 'ITM-001',
        'product_name': 'USB-C Cable',
        'unit_of_measure': 'pcs',
        'buy_price': '4.50',
        'location': 'Aisle 3',
    }
    item.update(overrides)
    return item


class TestValidateRecord:
    def test_cleans_valid_item(self):
        cleaned = validate_record(valid_item(total_quantity='12', product_name='  USB-C Cable  '),
                                  INVENTORY_ITEM_RULES)

        assert cleaned['product_name'] == 'USB-C Cable'
        assert cleaned['buy_price'] == Decimal('4.50')
        assert cleaned['total_quantity'] == 12

    @pytest.mark.parametrize("field", ['item_code', 'product_name', 'unit_of_measure', 'buy_price', 'location'])
    def test_missing_required_field_is_named(self, field):
        item = valid_item()
        del item[field]

        with pytest.raises(ValidationError) as exc:
            validate_record(item, INVENTORY_ITEM_RULES)
        assert exc.value.field == field

    def test_blank_required_field_is_missing(self):
        with pytest.raises(ValidationError) as exc:
            validate_record(valid_item(location='   '), INVENTORY_ITEM_RULES)
        assert exc.value.field == 'location'

    def test_partial_update_skips_absent_required_fields(self):
        cleaned = validate_record({'location': 'Aisle 9'}, INVENTORY_ITEM_RULES, partial=True)

        assert cleaned == {'location': 'Aisle 9'}

    def test_partial_update_cannot_blank_a_required_field(self):
        with pytest.raises(ValidationError) as exc:
            validate_record({'product_name': ''}, INVENTORY_ITEM_RULES, partial=True)
        assert exc.value.field == 'product_name'

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_record(valid_item(status='archived'), INVENTORY_ITEM_RULES)
        assert exc.value.field == 'status'

    @pytest.mark.parametrize("quantity", ['1.5', 'ten', True, 'inf', 'NaN'])
    def test_non_integer_quantity_rejected(self, quantity):
        with pytest.raises(ValidationError) as exc:
            validate_record(valid_item(total_quantity=quantity), INVENTORY_ITEM_RULES)
        assert exc.value.field == 'total_quantity'

    def test_integral_float_accepted(self):
        cleaned = validate_record(valid_item(total_quantity=7.0), INVENTORY_ITEM_RULES)

        assert cleaned['total_quantity'] == 7

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_record(valid_item(buy_price='-1'), INVENTORY_ITEM_RULES)
        assert exc.value.field == 'buy_price'

    def test_non_numeric_price_rejected(self):
        with pytest.raises(ValidationError) as exc:
            validate_record(valid_item(sell_price='cheap'), INVENTORY_ITEM_RULES)
        assert exc.value.field == 'sell_price'

    def test_shipment_type_and_dates(self):
        shipment = {
            'shipment_id': 'SHP-1', 'material_name': 'Copper wire', 'quantity': 40,
            'unit': 'm', 'shipment_type': 'inbound', 'source': 'Supplier A',
            'destination': 'WH001', 'date_shipped': '2024-03-01',
        }
        assert validate_record(shipment, MATERIAL_SHIPMENT_RULES)['date_shipped'] == '2024-03-01'

        with pytest.raises(ValidationError) as exc:
            validate_record(dict(shipment, shipment_type='sideways'), MATERIAL_SHIPMENT_RULES)
        assert exc.value.field == 'shipment_type'

        with pytest.raises(ValidationError) as exc:
            validate_record(dict(shipment, date_shipped='03/01/2024'), MATERIAL_SHIPMENT_RULES)
        assert exc.value.field == 'date_shipped'

    def test_order_priority(self):
        order = {'order_id': 'ORD-1', 'customer_name': 'Acme', 'product_name': 'Cable', 'quantity': 2}
        assert validate_record(dict(order, priority='high'), ORDER_SHIPMENT_RULES)['priority'] == 'high'

        with pytest.raises(ValidationError) as exc:
            validate_record(dict(order, priority='urgent'), ORDER_SHIPMENT_RULES)
        assert exc.value.field == 'priority'

    def test_non_dict_rejected(self):
        with pytest.raises(ValidationError):
            validate_record(['item_code'], INVENTORY_ITEM_RULES)


class TestQuantityAdjustment:
    def test_mode_defaults_to_set(self):
        assert validate_quantity_adjustment('5', None) == (5, QuantityMode.set.value)

    @pytest.mark.parametrize("mode", ['set', 'add', 'subtract'])
    def test_known_modes(self, mode):
        assert validate_quantity_adjustment(3, mode) == (3, mode)

    def test_unknown_mode(self):
        with pytest.raises(ValidationError) as exc:
            validate_quantity_adjustment(3, 'multiply')
        assert exc.value.field == 'mode'

    @pytest.mark.parametrize("amount", [-1, '2.5', None, 'lots'])
    def test_bad_amount(self, amount):
        with pytest.raises(ValidationError) as exc:
            validate_quantity_adjustment(amount, 'add')
        assert exc.value.field == 'amount'


def test_sanitize_int_clamps_and_defaults():
    assert sanitize_int('50', min_val=1, max_val=10) == 10
    assert sanitize_int('-3', min_val=1) == 1
    assert sanitize_int('abc', default=7) == 7
    assert sanitize_int(None, default=7) == 7


def test_validate_date():
    assert validate_date('2024-02-29') == (True, '2024-02-29')
    assert validate_date('') == (True, '')
    assert validate_date('2023-02-29')[0] is False
