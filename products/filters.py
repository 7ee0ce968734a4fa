import django_filters

from .models import Product


class ProductFilter(django_filters.FilterSet):
    """
    Query-string filters of the public product listing.

    ``?keyword=lap&category=Laptop&price__gte=100&price__lte=900&ratings__gte=4``
    """

    keyword = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    category = django_filters.CharFilter(field_name="category", lookup_expr="iexact")

    class Meta:
        model = Product
        fields = {
            "price": ["gte", "lte"],
            "ratings": ["gte"],
        }
