from django.urls import path

from . import views

app_name = "tallyman"

urlpatterns = [
    path("visits/", views.VisitView.as_view(), name="visits"),
    path("rewards/", views.RewardListView.as_view(), name="rewards"),
    path("rewards/redeem/", views.RewardRedeemView.as_view(), name="reward-redeem"),
    path("rewards/<str:code>/", views.RewardDetailView.as_view(), name="reward-detail"),
    path("transactions/", views.TransactionListView.as_view(), name="transactions"),
    path("customers/", views.CustomerListView.as_view(), name="customers"),
    path("customers/<str:code>/", views.CustomerDetailView.as_view(), name="customer-detail"),
    path("employees/", views.EmployeeListView.as_view(), name="employees"),
    path("employees/<str:code>/status/", views.EmployeeStatusView.as_view(), name="employee-status"),
]
