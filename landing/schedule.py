"""EventBridge schedule for the cache priming job."""
import logging

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

PRIME_SCHEDULE_EXPRESSION = 'rate(1 hour)'
PRIME_TARGET_ID = 'events-landing-prime-query-cache'
PRIME_PERMISSION_STATEMENT_ID = 'events-landing-prime-query-cache-schedule'


def _error_code(error: ClientError) -> str:
    return error.response.get('Error', {}).get('Code', '')


def _get_rule_arn(events_client, rule_name: str):
    """Return the ARN of an existing rule, or None if there is no such rule."""
    try:
        response = events_client.describe_rule(Name=rule_name)
    except ClientError as e:
        if _error_code(e) == 'ResourceNotFoundException':
            return None
        logger.error(f"Error looking up schedule rule {rule_name}: {e}")
        raise

    return response['Arn']


def _grant_invoke_permission(lambda_client, function_arn: str, rule_arn: str) -> None:
    try:
        lambda_client.add_permission(
            FunctionName=function_arn,
            StatementId=PRIME_PERMISSION_STATEMENT_ID,
            Action='lambda:InvokeFunction',
            Principal='events.amazonaws.com',
            SourceArn=rule_arn
        )
        logger.info(f"Allowed {rule_arn} to invoke {function_arn}")
    except ClientError as e:
        if _error_code(e) != 'ResourceConflictException':
            logger.error(f"Error granting invoke permission to {rule_arn}: {e}")
            raise
        logger.debug(f"Invoke permission for {rule_arn} already granted")


def ensure_hourly_schedule(events_client, lambda_client, rule_name: str, function_arn: str) -> bool:
    """
    Make sure the hourly priming rule exists and can invoke the function.

    Safe to call on every invocation. An existing rule keeps its settings,
    but its target and the function's invoke permission are always
    reapplied, so a rule left half-configured by an earlier failed run is
    repaired. Both calls are idempotent.

    Args:
        events_client: boto3 EventBridge client
        lambda_client: boto3 Lambda client
        rule_name: Name of the schedule rule
        function_arn: ARN of the Lambda function to invoke

    Returns:
        True if the rule was created, False if it already existed
    """
    rule_arn = _get_rule_arn(events_client, rule_name)
    created = rule_arn is None

    if created:
        logger.info(f"Creating schedule rule {rule_name} ({PRIME_SCHEDULE_EXPRESSION})")
        response = events_client.put_rule(
            Name=rule_name,
            ScheduleExpression=PRIME_SCHEDULE_EXPRESSION,
            State='ENABLED',
            Description='Prime the events landing page caches'
        )
        rule_arn = response['RuleArn']
    else:
        logger.debug(f"Schedule rule {rule_name} already exists")

    events_client.put_targets(
        Rule=rule_name,
        Targets=[{'Id': PRIME_TARGET_ID, 'Arn': function_arn}]
    )
    _grant_invoke_permission(lambda_client, function_arn, rule_arn)

    return created
