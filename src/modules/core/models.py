"""Abstract base model for every table.

Primary keys are UUIDv7, so they sort by creation time. Locking rows
"in ascending id" therefore has a stable meaning across the ledger and
the order delete path.
"""

from __future__ import annotations

import uuid6
from django.db import models


class BaseModel(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid6.uuid7, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.pk}>"

    def save(self, *args, **kwargs) -> None:
        # auto_now fields are skipped when update_fields omits them; the
        # ledger writes update_fields=["stock"] and still wants the bump.
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "updated_at" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "updated_at"]
        super().save(*args, **kwargs)
