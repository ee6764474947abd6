"""Catalog and search endpoints."""
from typing import List, Optional

from mall_client.models import Banner, Category, Page, Product, ProductQuery
from mall_client.services.request import RequestPipeline


class ProductApi:
    def __init__(self, pipeline: RequestPipeline):
        self._pipeline = pipeline

    async def list_products(self, query: Optional[ProductQuery] = None) -> Page[Product]:
        params = query.to_params() if query else None
        data = await self._pipeline.get("/products", params=params)
        return Page[Product].model_validate(data or {})

    async def get_product(self, product_id: int) -> Product:
        data = await self._pipeline.get(f"/products/{product_id}")
        return Product.model_validate(data)

    async def list_categories(self) -> List[Category]:
        data = await self._pipeline.get("/categories")
        return [Category.model_validate(item) for item in data or []]

    async def category_tree(self) -> List[Category]:
        data = await self._pipeline.get("/categories/tree")
        return [Category.model_validate(item) for item in data or []]

    async def search(self, keyword: str, query: Optional[ProductQuery] = None) -> Page[Product]:
        params = query.to_params() if query else {}
        params["keyword"] = keyword
        data = await self._pipeline.get("/products/search", params=params)
        return Page[Product].model_validate(data or {})

    async def hot_keywords(self) -> List[str]:
        data = await self._pipeline.get("/search/hot")
        return [str(word) for word in data or []]

    async def search_suggestions(self, keyword: str) -> List[str]:
        data = await self._pipeline.get("/search/suggest", params={"keyword": keyword})
        return [str(word) for word in data or []]

    async def recommended(self) -> List[Product]:
        data = await self._pipeline.get("/products/recommend")
        return [Product.model_validate(item) for item in data or []]

    async def banners(self) -> List[Banner]:
        data = await self._pipeline.get("/banners")
        return [Banner.model_validate(item) for item in data or []]
