# opsmith_django/urls.py
from typing import Iterable

from django.urls import path

from . import views
from .conf import get_settings

app_name = "opsmith"


def build_urlpatterns(categories: Iterable[str] | None = None) -> list:
    """Routes for each category:

        <category>/<operation>[/]           zero arguments, trailing slash optional
        <category>/<operation>/<v1>/<v2>    positional string arguments
    """
    if categories is None:
        categories = get_settings()["CATEGORIES"]
    if isinstance(categories, str):
        categories = [c.strip() for c in categories.split(",") if c.strip()]

    patterns = [
        path("operations/", views.list_operations, name="operations"),
        path("operations/<str:category>/<str:operation>/", views.describe_operation, name="describe"),
    ]
    for category in categories:
        patterns += [
            path(f"{category}/<str:operation>/", views.run_operation, {"category": category},
                 name=f"{category}-run-noargs"),
            path(f"{category}/<str:operation>", views.run_operation, {"category": category}),
            path(f"{category}/<str:operation>/<path:values>", views.run_operation, {"category": category},
                 name=f"{category}-run"),
        ]
    return patterns


urlpatterns = build_urlpatterns()
