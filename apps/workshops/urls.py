from django.urls import path

from apps.workshops import views

urlpatterns = [
    path("workshops/", views.WorkshopListView.as_view(), name="workshop-list"),
    path("workshops/available/", views.AvailableWorkshopListView.as_view(), name="workshop-available"),
    path("workshops/stats/", views.WorkshopStatsView.as_view(), name="workshop-stats"),
    path("workshops/<int:workshop_id>/", views.WorkshopDetailView.as_view(), name="workshop-detail"),
    path("workshops/<int:workshop_id>/students/", views.WorkshopRosterView.as_view(), name="workshop-roster"),
]
