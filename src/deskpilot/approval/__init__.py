"""Approval and authentication gating."""

from deskpilot.approval.gate import ApprovalGate, ApprovalRequest, AuthGate, AuthRequest
from deskpilot.approval.policy import COMPUTER_USE, ApprovalPolicy, ApprovalRequirement

__all__ = [
    "ApprovalGate",
    "ApprovalRequest",
    "AuthGate",
    "AuthRequest",
    "ApprovalPolicy",
    "ApprovalRequirement",
    "COMPUTER_USE",
]
