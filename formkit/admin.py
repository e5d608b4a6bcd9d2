from django.contrib import admin
from .models import Option, EntityMeta


@admin.register(Option)
class OptionAdmin(admin.ModelAdmin):
    list_display = ('key', 'updated_at')
    search_fields = ('key',)
    # Values may be ciphertext; editing them by hand breaks decryption.
    readonly_fields = ('value', 'updated_at')


@admin.register(EntityMeta)
class EntityMetaAdmin(admin.ModelAdmin):
    list_display = ('entity_id', 'meta_key', 'updated_at')
    list_filter = ('meta_key',)
    search_fields = ('meta_key',)
    readonly_fields = ('meta_value', 'updated_at')
