"""Starter .keytrail.toml template written by ``keytrail init``."""

DEFAULT_TOML = """\
# keytrail configuration
version = "1.0"

[scan]
all_refs = false          # true = walk every ref (git log --all), not just HEAD
# max_revisions = 500     # stop after this many commits (newest first)
max_file_size_kb = 1024
skip_dirs = [".git"]
# run_timeout_s = 600     # cancel the run between commits after this long

[validation]
enabled = true
mode = "iam"              # iam = GetAccessKeyLastUsed with your own credentials
                          # sts = GetCallerIdentity signed with the found pair
max_workers = 4           # keep under the AWS API rate limit
region = "us-west-2"
# profile = "security-audit"
connect_timeout_s = 5
read_timeout_s = 10
max_attempts = 1          # botocore attempts per key; 1 = no retries

[output]
format = "terminal"       # terminal | json
show_summary = true
show_secrets = false
fail_on_indeterminate = false

[ignore]
# paths = ["vendor/*", "*.min.js"]

[rules]
# directory = ".keytrail-rules"
# disable = ["AWS_KEY_ID_BARE"]
"""
