"""
Settings for compute drivers.

Loaded by dynaconf in this order:

- defaults declared by the validators below
- `settings.yaml` and `.secrets.yaml` in the working directory
- `COMPUTE_PROVIDERS_` prefixed environment variables

Example overrides:
    COMPUTE_PROVIDERS_VSPHERE_HOST=vcenter.example.com
    COMPUTE_PROVIDERS_VSPHERE_VALIDATE_CERTS=true
    COMPUTE_PROVIDERS_DRIVERS_DISABLED='["vmware:vsphere"]'

Settings here are defaults only. The endpoint a call talks to is taken
from the credential passed to that call first, so concurrent callers can
target different endpoints without touching shared state.
"""
from dynaconf import Dynaconf, Validator

settings = Dynaconf(
    envvar_prefix="COMPUTE_PROVIDERS",
    settings_files=["settings.yaml", ".secrets.yaml"],
    validators=[
        Validator("VSPHERE_HOST", default=""),
        Validator("VSPHERE_PORT", default=443, is_type_of=int),
        Validator("VSPHERE_VALIDATE_CERTS", default=False, is_type_of=bool),
        Validator("IMAGE_ARCHITECTURE", default="x86_64"),
        Validator("DRIVERS_ENABLED", default=[]),
        Validator("DRIVERS_DISABLED", default=[]),
        Validator("LOG_LEVEL", default="INFO"),
    ],
)
