from django.urls import path

from . import views

urlpatterns = [
    path("design/generate/", views.generate_design, name="design-generate"),
    path("proxy-image/", views.proxy_image, name="proxy-image"),
]
