from django.http import Http404

from . import demo_forms

# Form id -> builder function(request) -> FormDefinition.
# Add new forms here; nothing is discovered at runtime.
FORM_BUILDERS = {
    'conditional_settings': demo_forms.build_conditional_settings,
    'general_settings': demo_forms.build_general_settings,
    'profile_preferences': demo_forms.build_profile_preferences,
}


def get_form_definition(form_id, request=None):
    """Builds a fresh definition for this request."""
    try:
        build = FORM_BUILDERS[form_id]
    except KeyError:
        raise Http404(f"Unknown form: {form_id}")
    return build(request)


def registered_form_ids():
    return list(FORM_BUILDERS)
