"""
catalog_service.py — Products, categories and reviews

Business Rules:
- Product listings are paginated from page 0; the next page exists only
  while pagination.hasNextPage is true
- Product detail and search are skipped (idle) for an empty slug/term and
  retried once
- Search results and categories stay fresh for 5 minutes
- Posting a review invalidates that product's ["reviews", product_id] keys

Called by: host UI
Depends on: api/client.py, orchestrator.py, forms.py, schemas/catalog.py
"""

from __future__ import annotations

from typing import Any

from storefront.api.client import ApiClient
from storefront.forms import FormErrors, form_mutation
from storefront.orchestrator import Mutation, Orchestrator, QueryResult
from storefront.retry import RetryPolicy
from storefront.schemas.catalog import (
    Category,
    DetailedProduct,
    PaginatedProducts,
    PaginatedReviews,
    Review,
    ReviewCreate,
)
from storefront.schemas.common import DataEnvelope

SEARCH_STALE_SECONDS = 5 * 60
CATEGORIES_STALE_SECONDS = 5 * 60


# ── Raw endpoints ───────────────────────────────────────────────────────


class ProductAPI:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_products(
        self,
        page: int = 0,
        page_size: int = 10,
        category: str | None = None,
        query: str | None = None,
        price_range: tuple[float, float] | None = None,
    ) -> PaginatedProducts:
        params: dict[str, Any] = {"page": page, "limit": page_size}
        if category:
            params["category"] = category
        if query:
            params["query"] = query
        if price_range is not None:
            params["min_price"], params["max_price"] = price_range
        return await self.client.get("/products", params, response_schema=PaginatedProducts)

    async def get_product_detail(self, slug: str) -> DetailedProduct:
        return await self.client.get(f"/products/{slug}", response_schema=DetailedProduct)


class CategoryAPI:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_categories(self) -> list[Category]:
        return await self.client.get("/categories", response_schema=list[Category])


class ReviewAPI:
    def __init__(self, client: ApiClient):
        self.client = client

    async def get_reviews(self, product_id: int, page: int = 0, limit: int = 10) -> PaginatedReviews:
        return await self.client.get(
            f"/reviews/{product_id}",
            {"page": page, "limit": limit},
            response_schema=PaginatedReviews,
        )

    async def create_review(self, product_id: int, rating: int, comment: str) -> Review:
        response = await self.client.post(
            f"/reviews/{product_id}",
            {"rating": rating, "comment": comment},
            request_schema=ReviewCreate,
            response_schema=DataEnvelope[Review],
        )
        return response.data


def next_page(page: PaginatedProducts | PaginatedReviews) -> int | None:
    pagination = page.pagination
    return pagination.page + 1 if pagination.has_next_page else None


def previous_page(page: PaginatedProducts | PaginatedReviews) -> int | None:
    pagination = page.pagination
    return pagination.page - 1 if pagination.has_previous_page else None


# ── Queries ─────────────────────────────────────────────────────────────


class CatalogService:
    def __init__(
        self,
        orchestrator: Orchestrator,
        *,
        products: ProductAPI | None = None,
        categories: CategoryAPI | None = None,
        reviews: ReviewAPI | None = None,
    ):
        self.orchestrator = orchestrator
        self.products_api = products or ProductAPI(orchestrator.client)
        self.categories_api = categories or CategoryAPI(orchestrator.client)
        self.reviews_api = reviews or ReviewAPI(orchestrator.client)
        self._retry_once = RetryPolicy.from_retries(1, orchestrator.retry.delay_seconds)

    async def products(
        self,
        page: int = 0,
        page_size: int = 10,
        *,
        category: str | None = None,
        query: str | None = None,
        price_range: tuple[float, float] | None = None,
    ) -> QueryResult:
        key = ("products", page, page_size, category, query, price_range)

        async def fetch() -> PaginatedProducts:
            return await self.products_api.get_products(page, page_size, category, query, price_range)

        return await self.orchestrator.run_query(key, fetch)

    async def all_products(self, page_size: int = 10, **filters: Any) -> list:
        """Walk every page of the listing; stops at the first failed page."""
        items: list = []
        page: int | None = 0
        while page is not None:
            result = await self.products(page, page_size, **filters)
            if not result.is_success:
                raise result.error
            items.extend(result.data.data)
            page = next_page(result.data)
        return items

    async def product_detail(self, slug: str) -> QueryResult:
        return await self.orchestrator.run_query(
            ("productDetail", slug),
            lambda: self.products_api.get_product_detail(slug),
            retry=self._retry_once,
            enabled=bool(slug),
        )

    async def search(self, term: str) -> QueryResult:
        return await self.orchestrator.run_query(
            ("searchProducts", term),
            lambda: self.products_api.get_products(query=term),
            retry=self._retry_once,
            stale_time=SEARCH_STALE_SECONDS,
            enabled=bool(term),
        )

    async def categories(self) -> QueryResult:
        return await self.orchestrator.run_query(
            ("categories",),
            self.categories_api.get_categories,
            retry=self._retry_once,
            stale_time=CATEGORIES_STALE_SECONDS,
        )

    async def reviews(self, product_id: int | None, page: int = 0, limit: int = 10) -> QueryResult:
        return await self.orchestrator.run_query(
            ("reviews", product_id, page, limit),
            lambda: self.reviews_api.get_reviews(product_id, page, limit),
            retry=self._retry_once,
            enabled=product_id is not None,
        )

    # ── Mutations ───────────────────────────────────────────────────────

    async def _create_review(self, variables: dict) -> Review:
        return await self.reviews_api.create_review(
            variables["product_id"], variables["rating"], variables["comment"]
        )

    def _review_posted(self, review: Review, variables: dict) -> None:
        self.orchestrator.invalidate(("reviews", variables["product_id"]))

    def create_review(self) -> Mutation:
        """Variables: {"product_id": int, "rating": int, "comment": str}."""
        return self.orchestrator.run_mutation(
            self._create_review, on_success=self._review_posted, name="create_review"
        )

    def review_form(self, errors: FormErrors) -> Mutation:
        """Review mutation whose failures land on the rating/comment fields."""
        return form_mutation(
            self.orchestrator,
            self._create_review,
            set_field_error=errors.set_field_error,
            set_server_error=errors.set_server_error,
            clear_errors=errors.clear,
            on_success=self._review_posted,
            name="review_form",
        )
