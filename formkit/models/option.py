from django.db import models


class Option(models.Model):
    key = models.CharField(
        max_length=191, unique=True,
        help_text="Prefixed storage key e.g. 'general_site_name'")

    # Encrypted fields arrive here already ciphered.
    value = models.JSONField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'formkit_option'
        ordering = ['key']
        permissions = [
            ('manage_options', 'Can manage plugin settings'),
        ]

    def __str__(self):
        return self.key
