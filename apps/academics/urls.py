# apps/academics/urls.py
from django.urls import path
from . import views

app_name = 'academics'

urlpatterns = [
    path('promote/', views.PromoteStudentsView.as_view(), name='promote_students'),
    path('transition/', views.TransitionTermView.as_view(), name='transition_term'),
]
