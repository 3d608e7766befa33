import threading
from typing import Iterable, List, Union
from pydantic import BaseModel


class Product(BaseModel):
    id: int
    name: str
    price: Union[int, float]


class ProductNotFound(Exception):
    """Raised when no product carries the requested id."""

    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


# Données initiales chargées au démarrage
SEED_PRODUCTS = [
    Product(id=1, name="Laptop Lenovo", price=3500),
    Product(id=2, name="Mouse Logitech", price=120),
]


class ProductStore:
    """
    Stockage en mémoire des produits.

    Every operation runs under a single lock so id assignment and
    removal never interleave. Nothing is persisted across restarts.
    """

    def __init__(self, products: Iterable[Product] = ()):
        self._lock = threading.Lock()
        self._products: List[Product] = [p.model_copy() for p in products]

    @classmethod
    def seeded(cls) -> "ProductStore":
        return cls(SEED_PRODUCTS)

    def reset(self, products: Iterable[Product]) -> None:
        with self._lock:
            self._products = [p.model_copy() for p in products]

    def _index_of(self, product_id: int) -> int:
        for idx, product in enumerate(self._products):
            if product.id == product_id:
                return idx
        raise ProductNotFound(product_id)

    def list(self) -> List[Product]:
        with self._lock:
            return list(self._products)

    def get(self, product_id: int) -> Product:
        with self._lock:
            return self._products[self._index_of(product_id)]

    def create(self, name: str, price: Union[int, float]) -> Product:
        with self._lock:
            new_id = max(p.id for p in self._products) + 1 if self._products else 1
            product = Product(id=new_id, name=name.strip(), price=price)
            self._products.append(product)
            return product

    def update(self, product_id: int, name: str, price: Union[int, float]) -> Product:
        with self._lock:
            idx = self._index_of(product_id)
            # Remplacement complet, pas de fusion des champs
            product = Product(id=product_id, name=name.strip(), price=price)
            self._products[idx] = product
            return product

    def delete(self, product_id: int) -> Product:
        with self._lock:
            return self._products.pop(self._index_of(product_id))

    def __len__(self) -> int:
        with self._lock:
            return len(self._products)
