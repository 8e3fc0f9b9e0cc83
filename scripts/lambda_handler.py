import json, os, urllib.request, urllib.error

# Hourly EventBridge target; the API decides which classes are due.
API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:8000").rstrip("/")
ENDPOINT = f"{API_BASE_URL}/api/ranking/scheduled-check/"

def lambda_handler(event, context):
    service_key = os.environ.get("INTERNAL_SERVICE_KEY")
    if not service_key:
        return {"statusCode": 500, "body": "INTERNAL_SERVICE_KEY not configured"}

    try:
        req = urllib.request.Request(
            ENDPOINT,
            data=b"{}",
            method="POST",
            headers={
                "Content-Type": "application/json",
                "X-Service-Key": service_key,
            }
        )

        # Only admission happens in this call; the worker checks the keywords
        with urllib.request.urlopen(req, timeout=30) as resp:
            result = json.loads(resp.read().decode() or "{}")
            status = resp.status

        return {
            "statusCode": status,
            "body": json.dumps({
                "checked_count": result.get("checked_count", 0),
                "enqueued_count": result.get("enqueued_count", 0),
                "skipped_count": result.get("skipped_count", 0),
            })
        }

    except urllib.error.HTTPError as e:
        return {"statusCode": e.code, "body": e.read().decode()}
    except Exception as e:
        return {"statusCode": 500, "body": str(e)}
