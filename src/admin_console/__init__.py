# This package contains the generic collection controller behind the admin console list views.
# It exists so users, transactions, and predictions share one filtering, paging, selection, and refresh pipeline.
# The modules separate transport, normalization, state, and orchestration to keep each layer testable.

__all__ = ["controller", "gateway", "resources"]
