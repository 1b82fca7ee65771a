from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from orderpricing.core.config import get_settings


@pytest.fixture()
def client():
    from orderpricing.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def bxgy_order() -> dict:
    return {
        "id": "ORD-1001",
        "status": "delivered",
        "createdAt": "2026-03-02T10:15:00Z",
        "subtotal": "60.00",
        "discountAmount": "5.00",
        "shippingAmount": "7.50",
        "taxAmount": "4.20",
        "totalAmount": "66.70",
        "items": [
            {"id": "i1", "productId": "pA", "productName": "Notebook", "quantity": 3, "unitPrice": "10.00", "totalPrice": "30.00"},
            {"id": "i2", "productId": "pB", "productName": "Pen", "quantity": 2, "unitPrice": "5.00", "totalPrice": "10.00"},
            {"id": "i3", "productId": "pC", "productName": "Mug", "quantity": 1, "unitPrice": "20.00", "totalPrice": "20.00"},
        ],
        "orderDiscounts": [
            {
                "id": "d-generic",
                "discountName": "Back to School",
                "amount": "5.00",
                "isAutomatic": True,
                "targetProductIds": ["pA", "pB"],
                "discountMetadata": {"kind": "deal", "offerKind": "bxgy_generic", "bxgy": {"buyQty": 2, "getQty": 1}},
            }
        ],
    }
