#!/usr/bin/env python3
"""
Example: Basic usage of ReviewPilot as a Python library
"""

from reviewpilot import AnalyzeOptions, analyze, load_config
from reviewpilot.diff import GitRepository, filter_files, parse_unified_diff

# Review the branch against its base, local layers only
config = load_config()
raw_diff = GitRepository("/path/to/project").get_diff(config.base_branch)
files = filter_files(parse_unified_diff(raw_diff), config.exclude_patterns, config.max_file_size_bytes)

findings = analyze(files, AnalyzeOptions(use_external=False, use_ml=False))

for finding in findings:
    location = finding.file if finding.line is None else f"{finding.file}:{finding.line}"
    print(f"[{finding.severity.value}] {location} ({finding.source.value})")
    print(f"  {finding.message}")

print(f"Review complete: {len(findings)} finding(s) in {len(files)} file(s)")
