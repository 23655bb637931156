# apps/assessment/urls.py
from django.urls import path
from . import views

app_name = 'assessment'

urlpatterns = [
    path('create/', views.CreateReportCardView.as_view(), name='reportcard_create'),
    path('<slug:scope>/generate/', views.GenerateReportView.as_view(), name='report_generate'),
]
