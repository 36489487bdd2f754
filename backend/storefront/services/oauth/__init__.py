from .service import OAuth2ProvisioningService, provider_from_registration, split_name

__all__ = ["OAuth2ProvisioningService", "provider_from_registration", "split_name"]
