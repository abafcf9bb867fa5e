from django.contrib import admin

from .models import MealPlan, Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "status", "payment_status", "total_amount", "meal_plan", "created")
    list_filter = ("status", "payment_status", "created")
    search_fields = ("id", "user__email")
    date_hierarchy = "created"
    raw_id_fields = ("user", "meal_plan")


@admin.register(MealPlan)
class MealPlanAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "status", "start_date", "end_date", "created")
    list_filter = ("status",)
    search_fields = ("user__email",)
    raw_id_fields = ("user",)
