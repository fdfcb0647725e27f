# emr_core/tests/helpers.py

def scoped(tenant):
    """Scope header kwargs for the DRF test client (HTTP_ prefix required)."""
    return {"HTTP_X_TENANT_ID": str(tenant.id)}
