# apps/academics/serializers.py

from rest_framework import serializers


class PromotionRequestSerializer(serializers.Serializer):
    school_id = serializers.UUIDField()
    academic_year = serializers.IntegerField(min_value=1900)
    cron_job = serializers.BooleanField(required=False, default=False)


class TermTransitionRequestSerializer(PromotionRequestSerializer):
    current_term_number = serializers.IntegerField(min_value=1, max_value=3)
