from django.conf import settings
from rest_framework.pagination import PageNumberPagination

from storefront.responses import envelope

from .models import Product


class ProductPagination(PageNumberPagination):
    """
    Fixed-size pages for the public listing.

    The paginator counts the filtered queryset before slicing it, so the
    response reports the unfiltered total, the filtered total and one page.
    """

    page_size = settings.PRODUCTS_PER_PAGE

    def get_paginated_response(self, data):
        return envelope(
            products=data,
            productsCount=Product.objects.count(),
            resultPerPage=self.page_size,
            filteredProductsCount=self.page.paginator.count,
        )
