from django.db import models


class EntityMeta(models.Model):
    entity_id = models.PositiveBigIntegerField(db_index=True)
    meta_key = models.CharField(max_length=191)
    meta_value = models.JSONField(null=True, blank=True)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'formkit_entity_meta'
        ordering = ['entity_id', 'meta_key']
        constraints = [
            models.UniqueConstraint(
                fields=['entity_id', 'meta_key'],
                name='formkit_unique_entity_meta_key'),
        ]

    def __str__(self):
        return f"#{self.entity_id} {self.meta_key}"
