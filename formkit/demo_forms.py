"""
Forms shown on the admin panel. Each builder takes the current request and
returns a fresh FormDefinition; registry.FORM_BUILDERS lists them.
"""
from .builder import FormBuilder
from .definitions import when

# =========================================================
# 1. CONDITIONAL LOGIC (API integration settings)
# =========================================================


def build_conditional_settings(request):
    form = FormBuilder('conditional_settings')
    form.save_to_options(prefix='conditional_settings_')
    form.success('Configuration saved successfully!')
    form.submit('Save Configuration')
    form.description(
        'Enable or disable options to see the related fields appear and disappear.')

    form.add('enable_api', 'checkbox', 'Enable API Integration') \
        .description('Check this to enable API functionality')

    form.add('api_provider', 'select', 'API Provider') \
        .options({'REST API': 'rest', 'SOAP API': 'soap', 'GraphQL': 'graphql'}) \
        .default('rest') \
        .show_when([[when('enable_api', 'is_checked')]])

    form.add('api_endpoint', 'url', 'API Endpoint URL') \
        .placeholder('https://api.example.com/v1/') \
        .show_when([[when('enable_api', 'is_checked')]])

    form.add('api_key', 'encrypted', 'API Key') \
        .required() \
        .show_when([[when('enable_api', 'is_checked'),
                     when('api_provider', 'equals', 'rest')]])

    form.add('wsdl_url', 'url', 'WSDL URL') \
        .required() \
        .show_when([[when('enable_api', 'is_checked'),
                     when('api_provider', 'equals', 'soap')]])

    form.add('graphql_schema', 'textarea', 'GraphQL Schema') \
        .rows(6) \
        .show_when([[when('enable_api', 'is_checked'),
                     when('api_provider', 'equals', 'graphql')]])

    form.add('enable_advanced', 'switch', 'Enable Advanced Features')

    form.add('auth_method', 'radio', 'Authentication Method') \
        .options({'No Authentication': 'none', 'Basic Auth': 'basic',
                  'Bearer Token': 'bearer', 'OAuth 2.0': 'oauth'}) \
        .default('none') \
        .show_when([[when('enable_advanced', 'is_checked')]])

    form.add('username', 'text', 'Username') \
        .show_when([[when('auth_method', 'equals', 'basic')]]) \
        .required()

    form.add('password', 'encrypted', 'Password') \
        .show_when([[when('auth_method', 'equals', 'basic')]]) \
        .required()

    form.add('bearer_token', 'encrypted', 'Bearer Token') \
        .show_when([[when('auth_method', 'equals', 'bearer')]]) \
        .required()

    # Either OAuth, or any auth together with a debug flag.
    form.add('client_id', 'text', 'OAuth Client ID') \
        .show_when([
            [when('auth_method', 'equals', 'oauth')],
            [when('auth_method', 'in', ['basic', 'bearer']),
             when('enable_debug', 'is_checked')],
        ])

    form.add('enable_debug', 'checkbox', 'Debug Mode') \
        .hide_when([[when('enable_advanced', 'not_checked')]])

    form.add('timeout', 'number', 'Request Timeout (seconds)') \
        .range(1, 120) \
        .default(30) \
        .required_when([[when('enable_api', 'is_checked')]])

    form.add('retry_notice', 'text', 'Retry notice') \
        .show_when([[when('timeout', 'greater_than', 60)]]) \
        .max_length(200)

    return form.build()


# =========================================================
# 2. GENERAL SETTINGS (uploads, colors, scheduling)
# =========================================================


def build_general_settings(request):
    form = FormBuilder('general_settings')
    form.save_to_options(prefix='general_')
    form.success('Settings saved successfully!')

    form.add('site_name', 'text', 'Site Name').required().max_length(120)
    form.add('contact_email', 'email', 'Contact Email').required()
    form.add('brand_color', 'color', 'Brand Color').default('#0073aa')
    form.add('logo', 'file', 'Logo') \
        .accept('image/*') \
        .max_size(2 * 1024 * 1024) \
        .description('PNG, JPG or GIF up to 2 MB')
    form.add('attachments', 'file', 'Attachments') \
        .accept('.pdf,.txt,image/*') \
        .multiple_files()
    form.add('channels', 'checkbox', 'Notification Channels') \
        .options({'Email': 'email', 'SMS': 'sms', 'Slack': 'slack'})
    form.add('slack_webhook', 'encrypted', 'Slack Webhook') \
        .show_when([[when('channels', 'contains', 'slack')]]) \
        .required()
    form.add('launch_date', 'date', 'Launch Date')
    form.add('footer_html', 'wysiwyg', 'Footer Content').rows(4)

    return form.build()


# =========================================================
# 3. PER-USER PREFERENCES (entity metadata)
# =========================================================


def build_profile_preferences(request):
    form = FormBuilder('profile_preferences')
    form.save_to_entity_meta(request.user.pk)
    form.capability('formkit.change_entitymeta')
    form.success('Preferences updated.')

    form.add('display_name', 'text', 'Display Name').min_length(2)
    form.add('items_per_page', 'range', 'Items per page').range(10, 100).step(10).default(20)
    form.add('newsletter', 'switch', 'Receive newsletter')
    form.add('newsletter_frequency', 'select', 'Frequency') \
        .options({'Daily': 'daily', 'Weekly': 'weekly', 'Monthly': 'monthly'}) \
        .default('weekly') \
        .show_when([[when('newsletter', 'is_checked')]])

    return form.build()
