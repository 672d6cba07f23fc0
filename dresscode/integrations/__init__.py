# Overview: External collaborators; payment gateway, notifier, blob store and tabular decoder.
