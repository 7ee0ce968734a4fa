"""
Product ViewSets for the storefront API.

- ``ProductViewSet``: public catalog, searchable, filterable and paginated.
- ``AdminProductViewSet``: full list and writes, administrators only.
"""

from django.http import Http404
from django.utils.decorators import method_decorator
from django.utils.translation import gettext_lazy as _
from django_filters.rest_framework import DjangoFilterBackend
from django_ratelimit.decorators import ratelimit
from rest_framework import status, viewsets
from rest_framework.exceptions import NotFound
from rest_framework.permissions import AllowAny, IsAuthenticated

from authentication.permissions import IsAdminRole
from storefront.responses import envelope

from .filters import ProductFilter
from .models import Product
from .pagination import ProductPagination
from .serializers import ProductDetailSerializer, ProductSerializer, ProductWriteSerializer
from .services import create_product, delete_product, update_product


class ProductLookupMixin:
    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound(_("Product not found"))


class ProductViewSet(ProductLookupMixin, viewsets.ReadOnlyModelViewSet):
    """
    Public catalog.

    The listing runs the filtered query twice: once to count every match and
    once for the requested page, so clients get both totals and the page.
    """

    queryset = Product.objects.prefetch_related("images")
    permission_classes = [AllowAny]
    filter_backends = [DjangoFilterBackend]
    filterset_class = ProductFilter
    pagination_class = ProductPagination

    def get_serializer_class(self):
        if self.action == "retrieve":
            return ProductDetailSerializer
        return ProductSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == "retrieve":
            queryset = queryset.prefetch_related("reviews")
        return queryset

    def retrieve(self, request, *args, **kwargs):
        return envelope(product=self.get_serializer(self.get_object()).data)


class AdminProductViewSet(ProductLookupMixin, viewsets.ModelViewSet):
    """
    Administrative product management.

    Writes go through ``products.services`` which keeps product images in the
    object store in step with the database.
    """

    queryset = Product.objects.prefetch_related("images")
    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated, IsAdminRole]
    pagination_class = None
    filter_backends = []

    def list(self, request, *args, **kwargs):
        products = self.get_queryset()
        return envelope(products=ProductSerializer(products, many=True).data)

    def retrieve(self, request, *args, **kwargs):
        return envelope(product=ProductDetailSerializer(self.get_object()).data)

    @method_decorator(ratelimit(key="user", rate="10/m", method="POST"))
    def create(self, request, *args, **kwargs):
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        product = create_product(request.user, dict(serializer.validated_data))
        return envelope(status=status.HTTP_201_CREATED, product=ProductSerializer(product).data)

    @method_decorator(ratelimit(key="user", rate="20/m", method=["PUT", "PATCH"]))
    def update(self, request, *args, **kwargs):
        # PUT and PATCH both apply only the fields sent.
        kwargs.pop("partial", None)
        product = self.get_object()
        serializer = ProductWriteSerializer(product, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        product = update_product(product, dict(serializer.validated_data))
        return envelope(product=ProductSerializer(product).data)

    @method_decorator(ratelimit(key="user", rate="10/m", method="DELETE"))
    def destroy(self, request, *args, **kwargs):
        delete_product(self.get_object())
        return envelope(message=_("Product deleted successfully"))
