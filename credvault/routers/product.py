from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..core.dependencies import require_bearer_token
from ..core.errors import NotFound
from ..database import get_db

router = APIRouter(dependencies=[Depends(require_bearer_token)])


@router.get("/all", response_model=schemas.ProductList)
def list_products(db: Session = Depends(get_db)):
    return {
        "status": status.HTTP_200_OK,
        "success": True,
        "products": crud.get_products(db),
    }


@router.post("/create", response_model=schemas.ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(product_in: schemas.ProductCreate, db: Session = Depends(get_db)):
    product = crud.create_product(db, product_in)
    return {
        "status": status.HTTP_201_CREATED,
        "success": True,
        "message": "Product created successfully",
        "product": product,
    }


@router.get("/{product_id}", response_model=schemas.ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = crud.get_product(db, product_id)
    if product is None:
        raise NotFound("Product not found")
    return {"status": status.HTTP_200_OK, "success": True, "product": product}


@router.put("/{product_id}", response_model=schemas.ProductResponse)
def update_product(product_id: int, product_in: schemas.ProductUpdate, db: Session = Depends(get_db)):
    product = crud.update_product(db, product_id, product_in)
    if product is None:
        raise NotFound("Product not found")
    return {
        "status": status.HTTP_200_OK,
        "success": True,
        "message": "Product updated successfully",
        "product": product,
    }


@router.delete("/{product_id}", response_model=schemas.ProductResponse)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    if not crud.delete_product(db, product_id):
        raise NotFound("Product not found")
    return {
        "status": status.HTTP_200_OK,
        "success": True,
        "message": "Product deleted successfully",
    }
