import json

import pytest
from aws_cdk import App, Environment
from aws_cdk.assertions import Match, Template

from infrastructure.config import ConfigError, SiteSettings
from infrastructure.stacks.website_bucket_stack import WebsiteBucketStack


ENV = Environment(account="123456789012", region="eu-north-1")
S3_WEBSITE_ENDPOINT = "s3-website.eu-north-1.amazonaws.com"
S3_WEBSITE_HOSTED_ZONE_ID = "Z3BAZG2TWCNX0D"


def _synth(group_name: str = "team1", settings: SiteSettings = None) -> Template:
    app = App()
    stack = WebsiteBucketStack(
        app,
        "WebsiteBucketStackTest",
        group_name=group_name,
        settings=settings,
        env=ENV,
    )
    return Template.from_stack(stack)


@pytest.fixture(scope="module")
def template() -> Template:
    return _synth()


@pytest.fixture(scope="module")
def bucket_id(template: Template) -> str:
    buckets = template.find_resources("AWS::S3::Bucket")
    assert len(buckets) == 1
    return next(iter(buckets))


def _only(template: Template, resource_type: str) -> dict:
    resources = template.find_resources(resource_type)
    assert len(resources) == 1, f"expected exactly one {resource_type}, got {len(resources)}"
    return next(iter(resources.values()))


def test_bucket_is_named_after_group_and_hosts_website(template: Template) -> None:
    template.resource_count_is("AWS::S3::Bucket", 1)
    template.has_resource_properties(
        "AWS::S3::Bucket",
        {
            "BucketName": "team1.cloud-ha.com",
            "WebsiteConfiguration": {"IndexDocument": "index.html"},
        },
    )


def test_bucket_policy_allows_only_get_object_from_whitelisted_ip(
    template: Template, bucket_id: str
) -> None:
    policy = _only(template, "AWS::S3::BucketPolicy")["Properties"]

    assert policy["Bucket"] == {"Ref": bucket_id}

    statements = policy["PolicyDocument"]["Statement"]
    assert len(statements) == 1
    statement = statements[0]

    assert statement["Effect"] == "Allow"
    assert statement["Action"] == "s3:GetObject"
    assert statement["Principal"] == {"AWS": "*"}
    assert statement["Condition"] == {"IpAddress": {"aws:SourceIp": "79.133.25.93/32"}}
    # Objects of this bucket only
    assert statement["Resource"] == {
        "Fn::Join": ["", [{"Fn::GetAtt": [bucket_id, "Arn"]}, "/*"]]
    }


def test_website_content_is_deployed_to_the_bucket(template: Template, bucket_id: str) -> None:
    template.resource_count_is("Custom::CDKBucketDeployment", 1)
    template.has_resource_properties(
        "Custom::CDKBucketDeployment",
        {
            "DestinationBucketName": {"Ref": bucket_id},
            "SourceBucketNames": Match.any_value(),
        },
    )


def test_website_url_output_is_exported_per_group(template: Template, bucket_id: str) -> None:
    template.has_output(
        "websiteBucketOutput",
        {
            "Description": "URL of the bucket assignment: team1",
            "Value": {"Fn::GetAtt": [bucket_id, "WebsiteURL"]},
            "Export": {"Name": "team1-assignment2-url"},
        },
    )


def test_alias_record_points_group_domain_at_bucket_website(template: Template) -> None:
    record = _only(template, "AWS::Route53::RecordSet")["Properties"]
    bucket = _only(template, "AWS::S3::Bucket")["Properties"]

    assert record["Type"] == "A"
    assert record["HostedZoneId"] == "Z0413857YT73A0A8FRFF"
    assert record["Name"].rstrip(".") == "team1.cloud-ha.com"
    # S3 website aliases only resolve when the bucket is named like the record.
    assert record["Name"].rstrip(".") == bucket["BucketName"]

    # Regional S3 website endpoint and its fixed hosted zone for eu-north-1.
    assert record["AliasTarget"]["DNSName"] == S3_WEBSITE_ENDPOINT
    assert record["AliasTarget"]["HostedZoneId"] == S3_WEBSITE_HOSTED_ZONE_ID


def test_hosted_zone_is_referenced_not_created(template: Template) -> None:
    template.resource_count_is("AWS::Route53::HostedZone", 0)


def test_distribution_has_single_bucket_origin_and_default_behavior(
    template: Template, bucket_id: str
) -> None:
    config = _only(template, "AWS::CloudFront::Distribution")["Properties"]["DistributionConfig"]

    origins = config["Origins"]
    assert len(origins) == 1
    assert bucket_id in json.dumps(origins[0]["DomainName"])

    assert config["DefaultCacheBehavior"]["TargetOriginId"] == origins[0]["Id"]
    assert "CacheBehaviors" not in config


def test_distribution_price_class_and_geo_denylist(template: Template) -> None:
    config = _only(template, "AWS::CloudFront::Distribution")["Properties"]["DistributionConfig"]

    assert config["PriceClass"] == "PriceClass_100"
    assert config["Restrictions"] == {
        "GeoRestriction": {"Locations": ["CN"], "RestrictionType": "blacklist"}
    }


def test_distribution_id_is_output(template: Template) -> None:
    distribution_id = next(iter(template.find_resources("AWS::CloudFront::Distribution")))
    template.has_output("DistributionId", {"Value": {"Ref": distribution_id}})


def test_team1_end_to_end(template: Template) -> None:
    template.has_resource_properties("AWS::S3::Bucket", {"BucketName": "team1.cloud-ha.com"})
    template.has_output("*", {"Export": {"Name": "team1-assignment2-url"}})
    template.has_resource_properties(
        "AWS::Route53::RecordSet", {"Name": Match.string_like_regexp(r"^team1\.cloud-ha\.com\.?$")}
    )


def test_custom_settings_flow_into_template() -> None:
    settings = SiteSettings(
        allowed_source_ip="203.0.113.0/24",
        price_class="PriceClass_All",
        geo_denylist=("CN", "RU"),
    )
    template = _synth("blue-team", settings)

    template.has_resource_properties("AWS::S3::Bucket", {"BucketName": "blue-team.cloud-ha.com"})
    template.has_resource_properties(
        "AWS::S3::BucketPolicy",
        {
            "PolicyDocument": {
                "Statement": [
                    Match.object_like(
                        {"Condition": {"IpAddress": {"aws:SourceIp": "203.0.113.0/24"}}}
                    )
                ]
            }
        },
    )

    config = _only(template, "AWS::CloudFront::Distribution")["Properties"]["DistributionConfig"]
    assert config["PriceClass"] == "PriceClass_All"
    assert config["Restrictions"]["GeoRestriction"]["Locations"] == ["CN", "RU"]


def test_invalid_group_name_fails_before_any_construct_is_created() -> None:
    app = App()

    with pytest.raises(ConfigError, match="group_name"):
        WebsiteBucketStack(app, "WebsiteBucketStackTest", group_name="Team_1", env=ENV)

    assert len(app.node.children) == 0


def test_invalid_settings_are_all_reported() -> None:
    settings = SiteSettings(allowed_source_ip="79.133.25.93", geo_denylist=("cn",))

    with pytest.raises(ConfigError) as excinfo:
        WebsiteBucketStack(App(), "WebsiteBucketStackTest", group_name="team1", settings=settings, env=ENV)

    assert "allowed_source_ip" in str(excinfo.value)
    assert "geo_denylist" in str(excinfo.value)


def test_region_agnostic_stack_fails_synthesis() -> None:
    # Route 53 S3 website aliases resolve per region.
    with pytest.raises(Exception, match="region-agnostic"):
        WebsiteBucketStack(App(), "WebsiteBucketStackTest", group_name="team1")
