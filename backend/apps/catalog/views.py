from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.api.permissions import IsAdminOrReadOnly
from apps.api.schemas import (
    ErrorResponseSerializer,
    MessageResponseSerializer,
    PageQuerySerializer,
    paginated_response,
)
from apps.common import get_logger
from .container import build_category_service, build_product_service
from .serializers import (
    CategoryDetailSerializer,
    CategoryListQuerySerializer,
    CategorySerializer,
    CategorySummarySerializer,
    CategoryWithCountSerializer,
    CategoryWriteSerializer,
    ProductFilterSerializer,
    ProductReadSerializer,
    ProductWriteSerializer,
)

logger = get_logger(__name__).bind(component="catalog", layer="view")


def _product_page_payload(page) -> dict:
    return {
        "products": ProductReadSerializer(page.items, many=True).data,
        "pagination": page.meta(),
    }


@extend_schema(tags=["Products"])
class ProductListView(APIView):
    permission_classes = [IsAdminOrReadOnly]
    service = build_product_service()
    log = logger.bind(view="ProductListView")

    @extend_schema(
        operation_id="products_list",
        summary="List products",
        description="Filterable, sortable and paginated. Cached results may be served.",
        parameters=[ProductFilterSerializer],
        responses={
            200: paginated_response("products", ProductReadSerializer),
            400: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        filters = ProductFilterSerializer(data=request.query_params.dict())
        filters.is_valid(raise_exception=True)
        self.log.debug("Handling product list request", **filters.validated_data)
        page = self.service.list_products(filters.validated_data)
        return Response(_product_page_payload(page))

    @extend_schema(
        summary="Create product",
        request=ProductWriteSerializer,
        responses={
            201: ProductReadSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            403: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.log.info(
            "Creating product via API", name=serializer.validated_data.get("name")
        )
        dto = self.service.create_product(serializer.validated_data)
        self.log.info("Product created via API", product_id=dto.id)
        return Response(ProductReadSerializer(dto).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Products"])
class ProductDetailView(APIView):
    permission_classes = [IsAdminOrReadOnly]
    service = build_product_service()
    log = logger.bind(view="ProductDetailView")

    @extend_schema(
        operation_id="products_retrieve",
        summary="Get product",
        parameters=[OpenApiParameter("product_id", int, OpenApiParameter.PATH)],
        responses={
            200: ProductReadSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request, product_id: int):
        self.log.debug("Fetching product detail", product_id=product_id)
        return Response(ProductReadSerializer(self.service.get_product(product_id)).data)

    @extend_schema(
        summary="Update product",
        description="Partial update; only the supplied fields change.",
        request=ProductWriteSerializer,
        responses={
            200: ProductReadSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def put(self, request, product_id: int):
        serializer = ProductWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        self.log.info("Updating product", product_id=product_id)
        dto = self.service.update_product(product_id, serializer.validated_data)
        return Response(ProductReadSerializer(dto).data)

    @extend_schema(
        summary="Patch product",
        request=ProductWriteSerializer,
        responses={
            200: ProductReadSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def patch(self, request, product_id: int):
        return self.put(request, product_id)

    @extend_schema(
        summary="Delete product",
        responses={
            200: MessageResponseSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def delete(self, request, product_id: int):
        self.log.info("Deleting product", product_id=product_id)
        self.service.delete_product(product_id)
        return Response({"message": "Product deleted successfully"})


@extend_schema(tags=["Categories"])
class CategoryListView(APIView):
    permission_classes = [IsAdminOrReadOnly]
    service = build_category_service()
    log = logger.bind(view="CategoryListView")

    @extend_schema(
        summary="List categories",
        parameters=[CategoryListQuerySerializer],
        responses={200: CategoryWithCountSerializer(many=True)},
    )
    def get(self, request):
        query = CategoryListQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        search = (query.validated_data.get("search") or "").strip() or None
        self.log.debug("Listing categories", search=search)
        data = self.service.list_categories(search)
        return Response({"categories": CategoryWithCountSerializer(data, many=True).data})

    @extend_schema(
        summary="Create category",
        request=CategoryWriteSerializer,
        responses={
            201: CategorySerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = CategoryWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = self.service.create_category(serializer.validated_data)
        self.log.info("Category created", category_id=dto.id)
        return Response(CategorySerializer(dto).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Categories"])
class CategoryDetailView(APIView):
    permission_classes = [IsAdminOrReadOnly]
    service = build_category_service()
    log = logger.bind(view="CategoryDetailView")

    @extend_schema(
        summary="Get category with its products",
        parameters=[OpenApiParameter("category_id", int, OpenApiParameter.PATH)],
        responses={
            200: CategoryDetailSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request, category_id: int):
        dto = self.service.get_category(category_id)
        return Response({"category": CategoryDetailSerializer(dto).data})

    @extend_schema(
        summary="Update category",
        request=CategoryWriteSerializer,
        responses={
            200: CategorySerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def put(self, request, category_id: int):
        serializer = CategoryWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        self.log.info("Updating category", category_id=category_id)
        dto = self.service.update_category(category_id, serializer.validated_data)
        return Response(CategorySerializer(dto).data)

    @extend_schema(
        summary="Patch category",
        request=CategoryWriteSerializer,
        responses={200: CategorySerializer},
    )
    def patch(self, request, category_id: int):
        return self.put(request, category_id)

    @extend_schema(
        summary="Delete category",
        responses={
            200: MessageResponseSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def delete(self, request, category_id: int):
        self.log.info("Deleting category", category_id=category_id)
        self.service.delete_category(category_id)
        return Response({"message": "Category deleted successfully"})


@extend_schema(tags=["Categories"])
class CategoryProductsView(APIView):
    permission_classes = [AllowAny]
    service = build_category_service()
    log = logger.bind(view="CategoryProductsView")

    @extend_schema(
        summary="List products in a category",
        parameters=[
            OpenApiParameter("category_id", int, OpenApiParameter.PATH),
            PageQuerySerializer,
        ],
        responses={
            200: paginated_response("products", ProductReadSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request, category_id: int):
        query = PageQuerySerializer(data=request.query_params.dict())
        query.is_valid(raise_exception=True)
        category, page = self.service.products_in_category(
            category_id, query.validated_data["page"], query.validated_data["limit"]
        )
        payload = {"category": CategorySummarySerializer(category).data}
        payload.update(_product_page_payload(page))
        return Response(payload)
