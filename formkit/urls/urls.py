from django.urls import path
from ..views import *


urlpatterns = [

    path("forms/", form_list_view, name="formkit_form_list"),
    path("forms/<slug:form_id>/", form_page_view, name="formkit_form_page"),

    # JSON helpers used by the form page
    path("api/forms/<slug:form_id>/conditions/",
         api_evaluate_conditions, name="api_formkit_conditions"),
    path("api/forms/<slug:form_id>/encrypt/",
         api_encrypt_field, name="api_formkit_encrypt"),
    path("api/forms/<slug:form_id>/decrypt/",
         api_decrypt_field, name="api_formkit_decrypt"),

]
