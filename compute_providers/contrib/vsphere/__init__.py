"""VMware vSphere driver (pyVmomi)."""

from .driver import VSphereDriver

__all__ = ["VSphereDriver"]
