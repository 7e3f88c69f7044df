"""
URL routing for the contracts API.
"""

from django.urls import path
from .views import (
    ContractAuditView,
    ContractDetailView,
    ContractListCreateView,
    ContractPayrollView,
    ContractStatusView,
    PayrollSummaryView,
    ShiftConfirmView,
    ShiftListCreateView,
)

urlpatterns = [
    path('contracts/', ContractListCreateView.as_view(), name='contract-list-create'),
    path('contracts/<int:pk>/', ContractDetailView.as_view(), name='contract-detail'),
    path('contracts/<int:pk>/status/', ContractStatusView.as_view(), name='contract-status'),
    path('contracts/<int:pk>/payroll/', ContractPayrollView.as_view(), name='contract-payroll'),
    path('contracts/<int:pk>/audit/', ContractAuditView.as_view(), name='contract-audit'),
    path('shifts/', ShiftListCreateView.as_view(), name='shift-list-create'),
    path('shifts/<int:pk>/confirm/', ShiftConfirmView.as_view(), name='shift-confirm'),
    path('payroll/', PayrollSummaryView.as_view(), name='payroll-summary'),
]
