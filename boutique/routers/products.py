from fastapi import APIRouter, Depends

from boutique.dependencies import encode, get_ledger, ledger_http_errors
from boutique.schemas.product import ProductCreate, ProductUpdate
from boutique.services.ledger_service import LedgerStore
from boutique.services.report_service import inventory_valuation, low_stock_products

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("")
def list_products(ledger: LedgerStore = Depends(get_ledger)):
    products = ledger.products
    return encode(
        {
            "items": products,
            "low_stock": low_stock_products(products),
            **inventory_valuation(products),
        }
    )


@router.post("", status_code=201)
def create_product(payload: ProductCreate, ledger: LedgerStore = Depends(get_ledger)):
    with ledger_http_errors():
        return encode(ledger.add_product(payload))


@router.patch("/{product_id}")
def update_product(
    product_id: str,
    payload: ProductUpdate,
    ledger: LedgerStore = Depends(get_ledger),
):
    with ledger_http_errors():
        return encode(ledger.update_product(product_id, payload))


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: str, ledger: LedgerStore = Depends(get_ledger)):
    with ledger_http_errors():
        ledger.delete_product(product_id)
