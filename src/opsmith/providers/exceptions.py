# opsmith/providers/exceptions.py


from opsmith.exceptions.base import OpsmithError, RetryableError, NonRetryableError


class ProviderError(OpsmithError): ...


class ProviderConfigurationError(ProviderError, NonRetryableError): ...


class ProviderCallError(ProviderError, RetryableError): ...


class ProviderResponseError(ProviderError): ...
