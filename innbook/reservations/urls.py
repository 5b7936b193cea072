from django.urls import path

from . import views

urlpatterns = [
    # Email templates
    path('email-templates/', views.EmailTemplateList.as_view(), name='email-template-list'),
    path('email-templates/<str:key>/', views.EmailTemplateDetail.as_view(), name='email-template-detail'),
    path('email-templates/<str:key>/preview/', views.EmailTemplatePreview.as_view(), name='email-template-preview'),
    path('email-templates/<str:key>/send-test/', views.EmailTemplateSendTest.as_view(), name='email-template-send-test'),
    path('email-templates/<str:key>/reset/', views.EmailTemplateReset.as_view(), name='email-template-reset'),
    # Reservations
    path('reservations/<str:booking_id>/send/<str:key>/', views.ReservationSendNow.as_view(), name='reservation-send-now'),
    path('reservations/<str:booking_id>/confirm-payment/', views.ReservationConfirmPayment.as_view(), name='reservation-confirm-payment'),
    path('reservations/<str:booking_id>/cancel/', views.ReservationCancel.as_view(), name='reservation-cancel'),
    path('reservations/<str:booking_id>/ledger/', views.ReservationLedger.as_view(), name='reservation-ledger'),
]
