from django.conf import settings

# ==========================================
# Defaults for the FORMKIT settings dict
# ==========================================

DEFAULTS = {
    # Base64 encoded 32 byte key. Empty means "generate one and keep it
    # in the option store".
    'ENCRYPTION_KEY': None,
    'MASTER_KEY_OPTION': 'formkit_master_key',

    # Permission required to submit forms and to read decrypted values.
    'ADMIN_CAPABILITY': 'formkit.manage_options',

    'CSRF_TOKEN_MAX_AGE': 60 * 60 * 24,

    # True: a field hidden by its own rule counts as its default in other
    # fields' conditions, whatever was posted for it.
    'HIDDEN_REFERENCES_USE_DEFAULT': False,

    # Uploads
    'MAX_UPLOAD_SIZE': 5 * 1024 * 1024,
    'UPLOAD_DIR': 'formkit_uploads/',
    'DANGEROUS_EXTENSIONS': (
        'php', 'php3', 'php4', 'php5', 'php7', 'php8', 'phtml', 'phar',
        'pht', 'phps', 'exe', 'bat', 'cmd', 'com', 'scr', 'msi', 'dll',
        'sh', 'bash', 'cgi', 'pl', 'py', 'rb', 'jsp', 'asp', 'aspx',
        'vbs', 'ps1', 'jar', 'htaccess', 'shtml',
    ),

    # Messages
    'SUCCESS_MESSAGE': 'Settings saved successfully!',
    'ERROR_MESSAGE': 'Failed to save settings.',
    'SECURITY_MESSAGE': 'Security check failed. Please try again.',
}


def formkit_setting(name):
    """
    Reads one FORMKIT setting at call time, falling back to DEFAULTS.
    """
    overrides = getattr(settings, 'FORMKIT', None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
