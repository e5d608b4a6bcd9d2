class RequestContext:
    """
    Reads one form's submission out of a Django HttpRequest.

    Inputs are namespaced "<form_id>-<field>", so several forms can share
    a page. The hidden marker "<form_id>-form_id" tells which one was posted.
    """

    def __init__(self, request, definition):
        self.request = request
        self.definition = definition

    @property
    def user(self):
        return getattr(self.request, 'user', None)

    def is_submission(self):
        if self.request.method != 'POST':
            return False
        return self.request.POST.get(self.definition.marker_name) == self.definition.form_id

    def raw(self, key):
        return self.request.POST.get(key)

    def field(self, name):
        """Raw submitted value for one declared field, or None."""
        definition = self.definition.fields[name]
        key = self.definition.input_name(name)

        if definition.type == 'file':
            source = self.request.FILES
        else:
            source = self.request.POST

        if key not in source:
            return None
        if definition.is_multi_valued:
            return source.getlist(key)
        return source.get(key)

    def submitted_values(self):
        """
        Every declared field that came back with the post. Checkbox-family
        inputs are never posted when unchecked, so on a submitted form their
        absence is reported as an explicit "off".
        """
        values = {}
        submitted = self.is_submission()
        for name, definition in self.definition.fields.items():
            value = self.field(name)
            if value is None:
                if submitted and definition.is_checkbox_family:
                    values[name] = definition.empty_value()
                continue
            values[name] = value
        return values

    def current_actor_capabilities(self):
        user = self.user
        if user is None or not user.is_authenticated or not user.is_active:
            return set()
        return set(user.get_all_permissions())
