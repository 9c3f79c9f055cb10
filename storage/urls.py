from django.apps import apps
from django.urls import path, re_path

from storage.views import DeleteView, GetView, ListView, SearchView, SetPutView, SetView

app_name = "storage"

config = apps.get_app_config("storage")
handles = {"store": config.store, "paginator": config.paginator}

urlpatterns = [
    path("set", SetView.as_view(**handles), name="set"),
    re_path(r"^set/(?P<key>.*)$", SetPutView.as_view(**handles), name="set-put"),
    re_path(r"^get/(?P<key>.*)$", GetView.as_view(**handles), name="get"),
    re_path(r"^delete/(?P<key>.*)$", DeleteView.as_view(**handles), name="delete"),
    path("list", ListView.as_view(**handles), name="list"),
    path("search", SearchView.as_view(**handles), name="search"),
]
