"""
Terraform Infrastructure Verifier Package.

This package provisions ephemeral environments from a Terraform
configuration, reads the live AWS resources back and checks them against
declarative expectations. Every environment is destroyed afterwards, whether
the checks passed, failed or crashed.

A verification run:
1. Loads scenario declarations (JSON file or the built-in catalogue)
2. Runs each scenario in its own copy of the Terraform directory, in parallel
3. Applies, inspects VPC, subnet, security group, RDS, ElastiCache, ECS,
   route table and log group resources, and evaluates the expectations
4. Re-plans after apply in drift scenarios to confirm the plan is a no-op
5. Reports pass/fail per scenario with observed and expected values
"""

from .core import run_verification

__all__ = ['run_verification']
