from django.apps import apps
from django.urls import path

from texts.views import HealthCheckView, TextRecordView

app_name = "texts"

# The app config owns the gateway and store; hand the store to the views explicitly
store = apps.get_app_config("texts").store

urlpatterns = [
    path("api/texts/<str:key>", TextRecordView.as_view(store=store), name="text-detail"),
    path("health", HealthCheckView.as_view(), name="health"),
]
