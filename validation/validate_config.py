from typing import List
import os
import shutil
from validation.validation_helpers import ValidationIssue
from common.config import Config
from folder_rebalancing.entrypoints.rebalance import TRANSFER_METHODS


def validate_filter_range(cfg: Config) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if cfg.filter.min_size > cfg.filter.max_size:
        issues.append(ValidationIssue("filter", "FILTER_RANGE_INVALID", "error",
                                      f"filter.min_size ({cfg.filter.min_size}) is greater than filter.max_size ({cfg.filter.max_size})"))
    elif cfg.filter.min_size == cfg.filter.max_size:
        issues.append(ValidationIssue("filter", "FILTER_RANGE_EMPTY", "warning",
                                      "filter.min_size equals filter.max_size; no folder can match"))
    return issues

def validate_source_roots(cfg: Config) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if not cfg.paths.sources:
        issues.append(ValidationIssue("paths.sources", "NO_SOURCES", "error", "No source roots configured"))
    for root in cfg.paths.sources:
        if not os.path.isdir(root):
            issues.append(ValidationIssue(root, "SOURCE_ROOT_MISSING", "warning", f"Source root is not a directory: {root}"))
    return issues

def validate_destination_roots(cfg: Config) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if not cfg.paths.destinations:
        issues.append(ValidationIssue("paths.destinations", "NO_DESTINATIONS", "warning", "No destination roots configured"))
    for root in cfg.paths.destinations:
        if not os.path.isdir(root):
            issues.append(ValidationIssue(root, "DESTINATION_ROOT_MISSING", "warning", f"Destination root is not a directory: {root}"))
    return issues

def validate_transfer(cfg: Config) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if cfg.transfer.method not in TRANSFER_METHODS:
        issues.append(ValidationIssue("transfer.method", "UNKNOWN_TRANSFER_METHOD", "error",
                                      f"Unknown transfer method '{cfg.transfer.method}' (expected one of: {', '.join(TRANSFER_METHODS)})"))
    elif cfg.transfer.method == "rsync" and shutil.which(cfg.transfer.rsync_binary) is None:
        issues.append(ValidationIssue(cfg.transfer.rsync_binary, "RSYNC_NOT_FOUND", "error",
                                      f"rsync binary not found: {cfg.transfer.rsync_binary}"))
    return issues

def validate_config(cfg: Config) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    issues += validate_filter_range(cfg)
    issues += validate_source_roots(cfg)
    issues += validate_destination_roots(cfg)
    issues += validate_transfer(cfg)
    return issues
