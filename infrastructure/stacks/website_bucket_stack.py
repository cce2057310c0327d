"""S3 static website stack with IP-restricted access, Route 53 alias and CloudFront."""

import logging
from typing import Optional, Tuple

from aws_cdk import (
    Stack,
    aws_cloudfront as cloudfront,
    aws_cloudfront_origins as origins,
    aws_iam as iam,
    aws_route53 as route53,
    aws_route53_targets as targets,
    aws_s3 as s3,
    aws_s3_deployment as s3_deployment,
    CfnOutput,
)
from constructs import Construct

from infrastructure.config import SiteSettings, ensure_valid_site


logger = logging.getLogger(__name__)

_PRICE_CLASSES = {
    "PriceClass_100": cloudfront.PriceClass.PRICE_CLASS_100,
    "PriceClass_200": cloudfront.PriceClass.PRICE_CLASS_200,
    "PriceClass_All": cloudfront.PriceClass.PRICE_CLASS_ALL,
}


class WebsiteBucketStack(Stack):
    """
    Stack hosting one group's static website.

    Declares, in order: the website bucket, its IP-restricted bucket policy,
    the content deployment, the website URL output, the Route 53 alias record
    and the CloudFront distribution (with its id output).
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        group_name: str,
        *,
        settings: Optional[SiteSettings] = None,
        **kwargs
    ) -> None:
        """
        Initialize the website stack.

        Args:
            scope: The parent construct
            construct_id: The logical ID of the stack
            group_name: Group identifier; the site is served at {group_name}.{domain_suffix}
            settings: Site settings (domain, allowed IP, hosted zone, CloudFront options)
            **kwargs: Additional arguments to pass to Stack (env, description, ...)

        Raises:
            ConfigError: If the group name or settings are invalid
        """
        settings = settings or SiteSettings()
        ensure_valid_site(group_name, settings)

        super().__init__(scope, construct_id, **kwargs)
        self.group_name = group_name
        self.settings = settings
        self.site_domain = settings.site_domain(group_name)

        # Website bucket; public access goes exclusively through the bucket policy
        self.website_bucket = s3.Bucket(
            self,
            f"{group_name}Bucket",
            bucket_name=self.site_domain,
            website_index_document="index.html",
            public_read_access=False,
        )
        logger.debug("declared website bucket %s", self.site_domain)

        self.bucket_policy = self._setup_bucket_policy(self.website_bucket)
        self.bucket_deployment = self._setup_bucket_deployment(self.website_bucket)
        self._setup_website_url_output(self.website_bucket)
        self.hosted_zone, self.alias_record = self._setup_route53(self.website_bucket)
        self.distribution = self._setup_cloudfront(self.website_bucket)

    def _setup_bucket_policy(self, bucket: s3.Bucket) -> s3.BucketPolicy:
        """
        Allow s3:GetObject from the configured source IP only.

        Anything not matching the condition is denied by omission.
        """
        bucket_policy = s3.BucketPolicy(self, "BucketPolicy", bucket=bucket)
        bucket_policy.document.add_statements(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                principals=[iam.AnyPrincipal()],
                actions=["s3:GetObject"],
                resources=[bucket.arn_for_objects("*")],
                conditions={
                    "IpAddress": {"aws:SourceIp": self.settings.allowed_source_ip},
                },
            )
        )
        logger.debug(
            "declared bucket policy allowing s3:GetObject from %s",
            self.settings.allowed_source_ip,
        )
        return bucket_policy

    def _setup_bucket_deployment(self, bucket: s3.Bucket) -> s3_deployment.BucketDeployment:
        """Sync the local website directory into the bucket at deploy time."""
        deployment = s3_deployment.BucketDeployment(
            self,
            "BucketDeployment",
            sources=[s3_deployment.Source.asset(self.settings.website_asset_path)],
            destination_bucket=bucket,
        )
        logger.debug("declared deployment of %s", self.settings.website_asset_path)
        return deployment

    def _setup_website_url_output(self, bucket: s3.Bucket) -> CfnOutput:
        return CfnOutput(
            self,
            "websiteBucketOutput",
            description=f"URL of the bucket assignment: {self.group_name}",
            value=bucket.bucket_website_url,
            export_name=self.settings.export_name(self.group_name),
        )

    def _setup_route53(
        self, bucket: s3.Bucket
    ) -> Tuple[route53.IHostedZone, route53.ARecord]:
        """
        Point {group}.{domain_suffix} at the bucket's website endpoint.

        The hosted zone already exists and is only referenced here. S3 website
        alias targets need a concrete stack region.
        """
        hosted_zone = route53.HostedZone.from_hosted_zone_attributes(
            self,
            "hostedZone",
            hosted_zone_id=self.settings.hosted_zone_id,
            zone_name=self.settings.zone_name,
        )

        alias_record = route53.ARecord(
            self,
            "AliasRecord",
            zone=hosted_zone,
            record_name=self.site_domain,
            target=route53.RecordTarget.from_alias(targets.BucketWebsiteTarget(bucket)),
        )
        logger.debug(
            "declared alias record %s in zone %s (%s)",
            self.site_domain,
            self.settings.zone_name,
            self.settings.hosted_zone_id,
        )
        return hosted_zone, alias_record

    def _setup_cloudfront(self, bucket: s3.Bucket) -> cloudfront.Distribution:
        """Serve the bucket through CloudFront with a price class and a geo denylist."""
        distribution = cloudfront.Distribution(
            self,
            "WebsiteDistribution",
            default_behavior=cloudfront.BehaviorOptions(
                origin=origins.S3StaticWebsiteOrigin(bucket),
            ),
            price_class=_PRICE_CLASSES[self.settings.price_class],
            geo_restriction=cloudfront.GeoRestriction.denylist(*self.settings.geo_denylist),
        )
        logger.debug(
            "declared distribution (%s, denylist=%s)",
            self.settings.price_class,
            ",".join(self.settings.geo_denylist),
        )

        CfnOutput(
            self,
            "DistributionId",
            value=distribution.distribution_id,
            description="CloudFront distribution ID",
        )
        return distribution
