"""Shared fixtures for RSS Chat Notifier tests."""

from unittest.mock import Mock
from xml.sax.saxutils import escape

import boto3
import pytest
from moto import mock_aws

from rss_chat_notifier.property_store import PropertyStore

TABLE_NAME = "test-properties"
AWS_REGION = "us-east-1"


def build_rss(*items: dict) -> str:
    """Build an RSS 2.0 document with the given items, in the given order."""
    entries = []
    for item in items:
        fields = "".join(
            f"<{tag}>{escape(value)}</{tag}>" for tag, value in item.items()
        )
        entries.append(f"<item>{fields}</item>")

    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel>'
        "<title>Test Feed</title><link>https://example.com/</link>"
        "<description>Test feed</description>"
        f"{''.join(entries)}"
        "</channel></rss>"
    )


def rss_item(title: str, pub_date: str, description: str = "Body", link: str = "") -> dict:
    return {
        "title": title,
        "link": link or f"https://example.com/{title.lower().replace(' ', '-')}",
        "description": description,
        "pubDate": pub_date,
    }


def http_response(status_code: int = 200, text: str = "", content_type: str = "application/rss+xml; charset=utf-8") -> Mock:
    """Mock of a requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.content = text.encode("utf-8")
    response.headers = {"Content-Type": content_type}
    response.ok = 200 <= status_code < 400
    response.raise_for_status.return_value = None
    return response


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", AWS_REGION)


@pytest.fixture
def property_store(aws_credentials):
    """PropertyStore backed by a moto DynamoDB table."""
    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name=AWS_REGION)
        dynamodb.create_table(
            TableName=TABLE_NAME,
            KeySchema=[{"AttributeName": "property_key", "KeyType": "HASH"}],
            AttributeDefinitions=[
                {"AttributeName": "property_key", "AttributeType": "S"}
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        yield PropertyStore(TABLE_NAME, AWS_REGION)
