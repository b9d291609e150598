import json
from typing import Mapping, Optional

import boto3

from checkout_utils.logger import get_logger

logger = get_logger("secrets")

_SECRET_KEYS = ("secret_key", "STRIPE_SECRET_KEY")


def get_stripe_secret(secret_name: str, region_name: str = "us-east-1") -> Optional[str]:
    """
    Fetch the Stripe secret key from AWS Secrets Manager.

    Expects the secret value to be a JSON object, e.g.:

        {
          "secret_key": "sk_live_..."
        }

    ``STRIPE_SECRET_KEY`` is accepted as the field name too. Returns None when
    neither field is present so the caller reports the missing setting.
    """
    logger.info(
        "secrets.fetch",
        extra={"secret_name": secret_name, "region": region_name},
    )

    client = boto3.client("secretsmanager", region_name=region_name)

    resp = client.get_secret_value(SecretId=secret_name)
    secret_str = resp.get("SecretString")

    if not secret_str:
        msg = f"Secret '{secret_name}' has no SecretString payload"
        logger.error(msg)
        raise RuntimeError(msg)

    try:
        data = json.loads(secret_str)
    except json.JSONDecodeError as e:
        logger.error(
            "secrets.invalid_json",
            extra={"secret_name": secret_name, "error": str(e)},
        )
        raise

    for field in _SECRET_KEYS:
        if data.get(field):
            return data[field]

    logger.warning("secrets.missing_field", extra={"secret_name": secret_name})
    return None


def resolve_stripe_secret(env: Mapping[str, str]) -> Optional[str]:
    """
    STRIPE_SECRET_KEY wins; otherwise STRIPE_SECRET_NAME points at a
    Secrets Manager entry in AWS_REGION (default us-east-1).
    """
    secret = (env.get("STRIPE_SECRET_KEY") or "").strip()
    if secret:
        return secret

    secret_name = (env.get("STRIPE_SECRET_NAME") or "").strip()
    if not secret_name:
        return None

    return get_stripe_secret(secret_name, env.get("AWS_REGION") or "us-east-1")
