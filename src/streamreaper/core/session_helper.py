import logging
import os
from typing import Any

import boto3

logger = logging.getLogger(__name__)


def create_aws_session(config: Any) -> boto3.Session:
    """Build a boto3 session from config.

    Precedence: explicit access keys, then a credentials file + profile,
    then boto3's default credential chain.
    """
    try:
        aws = config.aws
    except AttributeError:
        aws = None

    access_key = getattr(aws, "aws_access_key_id", None)
    secret_key = getattr(aws, "aws_secret_access_key", None)
    session_token = getattr(aws, "aws_session_token", None)
    credential_file = getattr(aws, "credential_file_path", None)
    profile = getattr(aws, "profile", None)

    if access_key and secret_key:
        kwargs = {"aws_access_key_id": access_key, "aws_secret_access_key": secret_key}
        if session_token:
            kwargs["aws_session_token"] = session_token
        logger.info("Using credentials from config (access key + secret)")
        return boto3.Session(**kwargs)

    if credential_file:
        path = os.path.expanduser(credential_file)
        if os.path.isfile(path):
            os.environ["AWS_SHARED_CREDENTIALS_FILE"] = path
            kwargs = {"profile_name": profile} if profile else {}
            logger.info("Using credentials file at %s with profile '%s'", path, profile or "default")
            return boto3.Session(**kwargs)
        logger.warning("Credentials file %s not found; falling back to default session", path)

    logger.info("Using default boto3 session (env vars, ~/.aws/credentials, etc.)")
    return boto3.Session()
