"""Physical resource id derivation."""

import hashlib


def resource_identity(database: str, sql_query: str, secret_id: str) -> str:
    """
    SHA-1 hex digest of database + query + secret id.

    CloudFormation replaces the resource whenever this value changes, so it
    must stay stable for the same three inputs across deployments.
    """
    digest = hashlib.sha1((database + sql_query + secret_id).encode("utf-8"))
    return digest.hexdigest()
