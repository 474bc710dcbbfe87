from aws_lambda_powertools import Logger

# Shared across modules so appended keys (repository, image_tag) land on every line.
logger = Logger(service="ecr-postprocessor")
