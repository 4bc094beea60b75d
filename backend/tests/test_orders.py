# Overview: Pytest coverage for products, inventory adjustments, order placement and invoices.

from decimal import Decimal

import pytest

from slipsync.errors import ConflictError, ValidationError
from slipsync.models import Inventory, Invoice, Order
from slipsync.permissions import RoleName
from slipsync.services import catalog_service, order_service
from slipsync.services.order_service import compute_totals, generate_order_number

from conftest import auth_headers, make_order, make_product, make_user


class TestTotals:

    def test_tax_rounds_half_up(self):
        discount, taxes, total = compute_totals(Decimal("10.10"), None, "5")
        # 10.10 * 5% = 0.505 -> 0.51
        assert discount == Decimal("0.00")
        assert taxes == Decimal("0.51")
        assert total == Decimal("10.61")

    def test_discount_is_clamped(self):
        discount, taxes, total = compute_totals(Decimal("20.00"), "50", "10")
        assert discount == Decimal("20.00")
        assert taxes == Decimal("0.00")
        assert total == Decimal("0.00")

        discount, _, _ = compute_totals(Decimal("20.00"), "-5", None)
        assert discount == Decimal("0.00")

    def test_non_numeric_input(self):
        with pytest.raises(ValidationError):
            compute_totals(Decimal("1.00"), "abc", None)

    def test_order_number_format(self):
        number = generate_order_number()
        prefix, millis, suffix = number.split("-")
        assert prefix == "ORD"
        assert millis.isdigit()
        assert len(suffix) == 4


class TestProducts:

    def test_create_product_with_stock(self, client, db_session, admin_a, stores_a):
        response = client.post(
            '/api/products',
            json={'name': 'Chai', 'price': '150', 'sku': 'CHAI-1', 'initialStock': 12},
            headers=auth_headers(admin_a.external_user_id),
        )
        assert response.status_code == 201
        variant = response.json["variants"][0]
        assert variant["price"] == "150.00"

        row = db_session.query(Inventory).filter_by(variant_id=variant["id"]).one()
        assert row.store_id == stores_a[0].id
        assert row.quantity == 12

    def test_employee_cannot_create_products(self, client, db_session, employee_a):
        response = client.post(
            '/api/products',
            json={'name': 'Chai', 'price': '150'},
            headers=auth_headers(employee_a.external_user_id),
        )
        assert response.status_code == 403
        assert response.json["requiredPermission"] == "manage_products"

    def test_duplicate_sku(self, db_session, admin_a, stores_a):
        make_product(stores_a[0], sku="DUP")
        with pytest.raises(ValidationError):
            make_product(stores_a[0], name="Other", sku="DUP")

    def test_products_are_merchant_scoped(self, client, db_session, admin_a, admin_b, stores_a, store_b):
        make_product(stores_a[0], name="Chai")
        make_product(store_b, name="Cola")
        response = client.get('/api/products', headers=auth_headers(admin_b.external_user_id))
        assert [product["name"] for product in response.json] == ["Cola"]


class TestInventory:

    def test_adjust_up_and_down(self, client, db_session, employee_a, stores_a):
        variant = make_product(stores_a[0], stock=3)
        headers = auth_headers(employee_a.external_user_id)

        response = client.put('/api/inventory/adjust', json={'productVariantId': variant.id, 'quantityChange': 4}, headers=headers)
        assert response.status_code == 200
        assert response.json["quantity"] == 7

        response = client.put('/api/inventory/adjust', json={'productVariantId': variant.id, 'quantityChange': -7}, headers=headers)
        assert response.json["quantity"] == 0
        assert response.json["lowStock"] is True

    def test_cannot_go_negative(self, client, db_session, admin_a, stores_a):
        variant = make_product(stores_a[0], stock=2)
        response = client.put(
            '/api/inventory/adjust',
            json={'productVariantId': variant.id, 'quantityChange': -3},
            headers=auth_headers(admin_a.external_user_id),
        )
        assert response.status_code == 400
        assert db_session.query(Inventory).filter_by(variant_id=variant.id).one().quantity == 2

    def test_adjust_creates_row_for_new_store(self, db_session, admin_a, stores_a):
        variant = make_product(stores_a[0], stock=2)
        row = catalog_service.adjust_inventory(stores_a[1], variant.id, 5)
        assert row.store_id == stores_a[1].id
        assert row.quantity == 5

    def test_inventory_listing_uses_active_store(self, client, db_session, admin_a, stores_a):
        make_product(stores_a[0], name="Chai")
        make_product(stores_a[1], name="Samosa")
        response = client.get(
            '/api/inventory',
            headers=auth_headers(admin_a.external_user_id, **{'X-Store-Id': stores_a[1].id}),
        )
        assert response.status_code == 200
        assert [row["productName"] for row in response.json] == ["Samosa"]


class TestOrders:

    def test_place_order(self, client, db_session, employee_a, stores_a, merchant_a):
        variant = make_product(stores_a[0], price="99.99", stock=5)
        response = client.post(
            '/api/orders',
            json={
                'items': [{'productVariantId': variant.id, 'quantity': 2}],
                'customer': {'name': 'Zara', 'phone': '0300'},
                'discountAmount': '9.98',
                'taxRate': '17',
            },
            headers=auth_headers(employee_a.external_user_id),
        )
        assert response.status_code == 201
        body = response.json
        assert body["subtotal"] == "199.98"
        assert body["discountsTotal"] == "9.98"
        assert body["taxesTotal"] == "32.30"
        assert body["totalAmount"] == "222.30"
        assert body["currency"] == merchant_a.currency
        assert body["customerName"] == "Zara"
        assert body["invoice"]["invoiceNumber"] == f"INV-{body['orderNumber']}"

        row = db_session.query(Inventory).filter_by(variant_id=variant.id).one()
        assert row.quantity == 3

    def test_insufficient_stock_rolls_back(self, db_session, admin_a, stores_a):
        plenty = make_product(stores_a[0], name="Chai", stock=10)
        scarce = make_product(stores_a[0], name="Samosa", stock=1)

        with pytest.raises(ConflictError, match="Insufficient stock for: Samosa"):
            order_service.create_order(
                stores_a[0],
                items=[
                    {'productVariantId': plenty.id, 'quantity': 2},
                    {'productVariantId': scarce.id, 'quantity': 2},
                ],
            )

        assert db_session.query(Order).count() == 0
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(Inventory).filter_by(variant_id=plenty.id).one().quantity == 10

    def test_missing_stock_record(self, db_session, admin_a, stores_a):
        variant = make_product(stores_a[0], stock=3)
        with pytest.raises(ConflictError, match="Stock record not found"):
            make_order(stores_a[1], admin_a, variant)

    def test_items_required(self, db_session, admin_a, stores_a):
        with pytest.raises(ValidationError):
            order_service.create_order(stores_a[0], items=[])
        with pytest.raises(ValidationError):
            order_service.create_order(stores_a[0], items=[{'quantity': 1}])

    def test_variant_of_other_merchant(self, client, db_session, admin_a, store_b):
        foreign = make_product(store_b, name="Cola")
        response = client.post(
            '/api/orders',
            json={'items': [{'productVariantId': foreign.id, 'quantity': 1}]},
            headers=auth_headers(admin_a.external_user_id),
        )
        assert response.status_code == 404

    def test_order_lookup_is_store_scoped(self, client, db_session, admin_a, stores_a):
        variant = make_product(stores_a[0])
        order = make_order(stores_a[0], admin_a, variant)

        own = client.get(f'/api/orders/{order.id}', headers=auth_headers(admin_a.external_user_id))
        assert own.status_code == 200
        assert len(own.json["items"]) == 1

        other = client.get(
            f'/api/orders/{order.id}',
            headers=auth_headers(admin_a.external_user_id, **{'X-Store-Id': stores_a[1].id}),
        )
        assert other.status_code == 404

    def test_list_orders_and_invoices(self, client, db_session, admin_a, stores_a):
        variant = make_product(stores_a[0], stock=5)
        make_order(stores_a[0], admin_a, variant, quantity=2)
        headers = auth_headers(admin_a.external_user_id)

        orders = client.get('/api/orders', headers=headers).json
        assert len(orders) == 1
        assert orders[0]["itemCount"] == 1

        invoices = client.get('/api/invoices', headers=headers).json
        assert len(invoices) == 1
        assert invoices[0]["orderId"] == orders[0]["id"]

    def test_employee_without_store_cannot_order(self, client, db_session, merchant_a, stores_a, setup_roles):
        make_user(db_session, merchant_a, "user_emp_nostore", RoleName.EMPLOYEE)
        response = client.post(
            '/api/orders',
            json={'items': []},
            headers=auth_headers("user_emp_nostore"),
        )
        assert response.status_code == 400
        assert response.json["error"] == "No store assigned"
