"""Built-in AWS key pair patterns."""

from keytrail.rules.models import Rule

AWS_KEY_ID_ASSIGNMENT = Rule(
    id="AWS_KEY_ID_ASSIGNMENT",
    name="AWS Access Key ID assignment",
    kind="identifier",
    description="aws_access_key_id=... / AWS_ACCESS_KEY_ID: ... in env, ini, yaml or code.",
    pattern=r"""(?i)aws_access_key_id["']?\s*[=:]\s*["']?(?P<value>[\w/+]{16,})["']?""",
)

AWS_KEY_ID_BARE = Rule(
    id="AWS_KEY_ID_BARE",
    name="AWS Access Key ID",
    kind="identifier",
    description="Long-term access key ids (AKIA prefix) anywhere in the text.",
    pattern=r"(?<![A-Za-z0-9])(?P<value>AKIA[0-9A-Z]{16})(?![A-Za-z0-9])",
)

AWS_SECRET_ASSIGNMENT = Rule(
    id="AWS_SECRET_ASSIGNMENT",
    name="AWS Secret Access Key assignment",
    kind="secret",
    description="aws_secret_access_key=... in env, ini, yaml or code.",
    pattern=r"""(?i)aws_secret_access_key["']?\s*[=:]\s*["']?(?P<value>[^\s"',;]+)""",
)

ALL_AWS_RULES = [AWS_KEY_ID_ASSIGNMENT, AWS_KEY_ID_BARE, AWS_SECRET_ASSIGNMENT]
